# formexport/config.py
"""
Export settings. Values can be overridden through FORMEXPORT_* environment variables.
"""

import os
from reportlab.lib.pagesizes import A4

# Output page format in PDF points
PAGE_WIDTH, PAGE_HEIGHT = A4

# Off-screen capture
PRINT_WIDTH = "210mm"
PRINT_PADDING = "10mm"
CAPTURE_SCALE = 2
CAPTURE_CHUNK_HEIGHT = 14400  # largest page height PDF viewers accept

# Attachment image pages
IMAGE_PAGE_MARGIN = 40

# Print page
PRINT_DELAY_MS = 500
PRINT_BODY_PADDING = "20mm"
PRINT_FILE_LIFETIME = 10  # seconds the temporary print page is kept for the browser

# Object store
STORAGE_URL = os.environ.get("FORMEXPORT_STORAGE_URL", "")
STORAGE_KEY = os.environ.get("FORMEXPORT_STORAGE_KEY", "")
STORAGE_BUCKET = os.environ.get("FORMEXPORT_STORAGE_BUCKET", "attachments")

# Local persistence
DATA_DIR = os.environ.get("FORMEXPORT_DATA_DIR", os.path.join(os.path.expanduser("~"), ".formexport"))
MAX_DRAFTS = 5

# No timeout unless configured
_timeout = os.environ.get("FORMEXPORT_FETCH_TIMEOUT")
FETCH_TIMEOUT = float(_timeout) if _timeout else None
