import sys

from socket_connector.main import main

sys.exit(main())
