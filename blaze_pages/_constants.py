"""Common literal values used across blaze_pages.

These constants keep asset names, URL conventions, and protocol limits
centralized so the builder, the runtime templates, and the tests import the
same values without drifting. Intended for internal use within the
blaze_pages package.

Examples
--------
>>> from blaze_pages import _constants
>>> _constants.ASSET_DIGEST_LENGTH
10
>>> _constants.NOT_FOUND_PAGE
'404.html'
"""

ASSET_DIGEST_LENGTH = 10
VERSION_TOKEN_LENGTH = 12

ASSETS_DIRNAME = "assets"
MEDIA_DIRNAME = "media"
HOME_URL = "./"
NOT_FOUND_PAGE = "404.html"
DEFAULT_ORDER = 999

DEFAULT_CACHE_PREFIX = "blaze"
SKIP_WAITING_MESSAGE = "SKIP_WAITING"
RELOAD_FLAG_KEY = "blaze-sw-controller-reloaded"

SEARCH_MIN_QUERY_LENGTH = 2
SEARCH_RESULT_LIMIT = 8
SEARCH_TITLE_SCORE = 4
SEARCH_BODY_SCORE = 1
SEARCH_EXCERPT_LENGTH = 140
SEARCH_READY_TIMEOUT = 5.0
SEARCH_DEBOUNCE_SECONDS = 0.08
