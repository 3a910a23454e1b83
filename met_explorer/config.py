"""
Runtime configuration for the MET explorer.

Values come from environment variables (optionally loaded from a .env file)
and fall back to defaults that keep well under the public API's informal
rate limits.
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Collection API root
MET_API_BASE_URL = os.getenv(
    'MET_API_BASE_URL',
    'https://collectionapi.metmuseum.org/public/collection/v1'
).rstrip('/')

# Retry and backoff
MAX_RETRIES = int(os.getenv('MET_MAX_RETRIES', '3'))  # retries after the first try
BASE_DELAY = float(os.getenv('MET_BASE_DELAY', '1.0'))  # seconds, doubled per attempt
REQUEST_TIMEOUT = float(os.getenv('MET_REQUEST_TIMEOUT', '15'))  # seconds per request
LOW_QUOTA_THRESHOLD = int(os.getenv('MET_LOW_QUOTA_THRESHOLD', '10'))

# Batched detail loading
BATCH_SIZE = int(os.getenv('MET_BATCH_SIZE', '4'))
INTER_BATCH_DELAY = float(os.getenv('MET_INTER_BATCH_DELAY', '0.3'))  # seconds

# How many artworks each view asks for
BROWSE_SAMPLE_SIZE = int(os.getenv('MET_BROWSE_SAMPLE_SIZE', '12'))
SEARCH_RESULT_LIMIT = int(os.getenv('MET_SEARCH_RESULT_LIMIT', '12'))
RELATED_LIMIT = int(os.getenv('MET_RELATED_LIMIT', '6'))

LOG_LEVEL = os.getenv('MET_LOG_LEVEL', 'INFO').upper()
