"""App runner: configure logging and run BlinkEndurance.core.app.main()."""
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from BlinkEndurance.core.app import main

if __name__ == "__main__":
    level = (os.environ.get("BLINKENDURANCE_LOG_LEVEL", "") or "INFO").strip().upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
