"""Configuration settings for cntblank."""

from pathlib import Path
from typing import Dict, Any

# Reader limits
MAX_ERROR_LINES = 100  # A source fails once more lines than this are malformed
PROGRESS_INTERVAL = 1000000  # Log a progress line every N rows
MEMORY_THRESHOLD = 0.8  # 80% memory usage threshold before loading a workbook

# Supported file formats
DELIMITED_FORMATS = {'.csv', '.tsv', '.txt'}
SPREADSHEET_FORMATS = {'.xlsx'}
SUPPORTED_FORMATS = DELIMITED_FORMATS | SPREADSHEET_FORMATS

# Dialect defaults
DEFAULT_DELIMITER = '\t'
DEFAULT_COMMENT = '#'
DEFAULT_ENCODING = 'utf8'
DEFAULT_SHEET_NUMBER = 1

# Output formats understood by the report writers
OUTPUT_FORMATS = ('csv', 'json', 'html', 'excel')
DEFAULT_OUTPUT_FORMAT = 'csv'

# Directory structure
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = BASE_DIR / "logs"
LOG_FILE = LOGS_DIR / "cntblank.log"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Excel reading parameters
EXCEL_PARAMS: Dict[str, Any] = {
    'engine': 'openpyxl',  # For .xlsx files
}

# Sheets are read as raw cells, the first row is not a header
EXCEL_SHEET_PARAMS: Dict[str, Any] = {
    'header': None,
    'dtype': object,
}

# Excel writing parameters
EXCEL_WRITER_PARAMS: Dict[str, Any] = {
    'engine': 'openpyxl',
}


def ensure_directories() -> None:
    """Create necessary directories if they don't exist."""
    for directory in [LOGS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)
