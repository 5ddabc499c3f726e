import logging
import sys

from config_factory import CONF

# Close any handler left over from a previous configuration of the same file
logger = logging.getLogger()
for handler in logger.handlers[:]:
    if isinstance(handler, logging.FileHandler) and handler.baseFilename.endswith(CONF.log_file):
        handler.close()
        logger.removeHandler(handler)

logging.basicConfig(
    level=getattr(logging, CONF.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
    handlers=[
        logging.FileHandler(CONF.log_file, mode='a', encoding='utf-8'),
        logging.StreamHandler(sys.stderr)
    ],
    force=True  # This clears any existing handlers
)

# Console output may contain district names outside the ASCII range
for handler in logging.getLogger().handlers:
    if isinstance(handler, logging.StreamHandler) and handler.stream == sys.stderr:
        try:
            if hasattr(handler.stream, 'reconfigure'):
                handler.stream.reconfigure(encoding='utf-8', errors='replace')
        except (OSError, ValueError) as e:
            logging.getLogger(__name__).debug(f"Could not reconfigure stderr encoding: {e}")

logger = logging.getLogger(__name__)
