"""mdu — Media Download Utility.

Extracts title, duration, thumbnail and downloadable format locators
from YouTube and TikTok pages, given only a page URL.
"""

from mdu.version import __version__

__all__: list[str] = ["__version__"]
