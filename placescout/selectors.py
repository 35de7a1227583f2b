"""Centralised selectors for Google Maps discovery and place extraction.

Changing any list here changes which element wins a fallback chain, so treat edits as
compatibility-breaking for downstream data.
"""

# ==== LISTING (search results feed) ====
PLACE_PATH_FRAGMENT = "/maps/place/"

# Readiness lists used by the navigation controller.
SEARCH_READY = (
    '[role="feed"]',
    "div.m6QErb",
    ".m6QErb[aria-label]",
    "a.hfpxzc",
)
PLACE_DETAIL_READY = ("h1",)

RESULTS_FEED = (
    '[role="feed"]',
    "div.m6QErb",
    ".m6QErb[aria-label]",
    f'div[role="main"] a[href*="{PLACE_PATH_FRAGMENT}"]',
    "a.hfpxzc",
)

# Scrollable container candidates, most specific first.
FEED_CONTAINER = (
    '[role="feed"]',
    'div[role="main"] div[aria-label]',
    ".m6QErb[aria-label]",
    ".m6QErb.DxyBCb",
    "div.m6QErb",
)
MAIN_REGION = 'div[role="main"]'

PLACE_LINKS = (
    f'a[href*="{PLACE_PATH_FRAGMENT}"]',
    "a.hfpxzc",
    'div[role="feed"] a[href*="maps"]',
    ".Nv2PK a[href]",
)

END_OF_LIST_PHRASES = (
    "you've reached the end",
    "reached the end",
    "no more",
    "end of list",
)

CONSENT_BUTTONS = (
    'button:has-text("Accept all")',
    'button:has-text("Accept")',
    'button:has-text("I agree")',
    'button[aria-label*="Accept"]',
    'form[action*="consent"] button',
)

# ==== PLACE DETAIL ====
NAME = ("h1",)

CATEGORY = (
    'button[jsaction*="category"]',
    '[data-item-id="authority"]',
    ".DkEaL",
    "button.DkEaL",
)
CATEGORY_SEPARATORS = ("·", "Â·")
CATEGORY_EXCLUDED_PHRASES = ("Directions",)

ADDRESS = (
    '[data-item-id="address"]',
    'button[data-item-id="address"]',
    '[aria-label*="Address"]',
)

WEBSITE = (
    '[data-item-id="authority"]',
    'a[data-item-id="authority"]',
    'a[aria-label*="Website"]',
    'a[href*="url?q="]',
)
WEBSITE_BUTTON = 'a[aria-label*="website" i]'
