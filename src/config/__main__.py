"""Config validation CLI. Use --help for usage."""

import sys
from pathlib import Path

from dotenv import load_dotenv

from config.config import _cli_main

# Project root directory (where .env file is located)
# __main__.py is at src/config/__main__.py, so root is 3 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent


if __name__ == "__main__":
    load_dotenv(PROJECT_ROOT / ".env")
    sys.exit(_cli_main())
