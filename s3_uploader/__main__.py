import sys

from s3_uploader.cli import main

sys.exit(main())
