import sys

from hayaku.cli import main

sys.exit(main())
