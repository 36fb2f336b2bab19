"""Browser-control collaborators."""
from vowser.src.browser.base import BrowserActionError, BrowserControl
from vowser.src.browser.remote import RemoteBrowser

__all__ = ["BrowserActionError", "BrowserControl", "RemoteBrowser"]
