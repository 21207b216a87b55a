import os
import tempfile

import config

# keep test runs from writing claim_log.txt into the working tree
config.LOG_FILE = os.path.join(tempfile.gettempdir(), "jager_claimer_tests.log")
