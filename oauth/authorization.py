"""OAuth authorization URL construction"""

from urllib.parse import urlencode

from settings import AUTHORIZE_URL, CLIENT_ID, REDIRECT_URI, SCOPES
from .models import PKCEContext


def build_authorize_url(
    pkce: PKCEContext,
    client_id: str = CLIENT_ID,
    redirect_uri: str = REDIRECT_URI,
    scope: str = SCOPES,
    authorize_url: str = AUTHORIZE_URL,
) -> str:
    """Construct the OAuth authorize URL with PKCE

    Args:
        pkce: PKCE context for this flow
        client_id: OAuth client identifier
        redirect_uri: Callback the provider redirects to after consent
        scope: Space separated scope string
        authorize_url: Authorization endpoint

    Returns:
        Full authorization URL
    """
    params = {
        "code": "true",  # Makes the callback page display the code
        "client_id": client_id,
        "response_type": "code",
        "redirect_uri": redirect_uri,
        "scope": scope,
        "code_challenge": pkce.challenge,
        "code_challenge_method": "S256",
        "state": pkce.state,
    }
    return f"{authorize_url}?{urlencode(params)}"
