"""claude.ai DOM selectors and URL fragments."""

from selenium.webdriver.common.by import By

# --- Login heuristics ---
# Any of these on the page means the profile is not signed in.
LOGIN_INDICATORS = [
    (By.CSS_SELECTOR, "input[type='email']"),
    (By.CSS_SELECTOR, "input[type='password']"),
    (By.XPATH, "//button[contains(normalize-space(.), 'Sign in')]"),
    (By.XPATH, "//button[contains(normalize-space(.), 'Log in')]"),
]

# URL fragments that put us on a sign-in flow.
LOGIN_URL_MARKERS = ("/login", "/signin", "/auth", "accounts.google.com")

# While polling for a manual login, the user is still mid-flow on these.
LOGIN_FLOW_MARKERS = ("login", "accounts.google", "oauth")

SETTINGS_URL_MARKER = "claude.ai/settings"
USAGE_URL_MARKER = "claude.ai/settings/usage"

# --- Page content ---
# textContent (not .text) so hidden spans in the meters are included.
BODY_TEXT_JS = "return document.body ? document.body.textContent : '';"
READY_STATE_JS = "return document.readyState;"
