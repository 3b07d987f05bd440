"""
Spotify OAuth credential management.

Keeps one access token usable for the whole of an unattended run. The
token lifecycle is driven by four independent keys in the token store:

    auth_code      captured once from the browser redirect
    refresh_token  minted from auth_code (authorization_code grant)
    access_token   minted from refresh_token (refresh_token grant)
    expiry         ISO-8601 instant after which access_token is stale

ensure_tokens() walks those keys in that order and fills in whatever is
missing, so a fresh install goes through all three steps and a warm one
usually only refreshes.
"""
import logging
import re
import socket
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional
from urllib.parse import unquote

import requests

from ...core.config import Config
from ...core.exceptions import AuthFlowError, TokenExchangeError, TokenNotFoundError
from ...core.models import TokenResponse
from ...storage.tokens import TokenKey, TokenStore

logger = logging.getLogger(__name__)

SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"

CALLBACK_BUFFER_SIZE = 1024

_CODE_PATTERN = re.compile(r"[?&]code=([^&\s#]*)")

_CALLBACK_RESPONSE = (
    "HTTP/1.1 {status}\r\n"
    "Content-Type: text/plain; charset=utf-8\r\n"
    "Connection: close\r\n"
    "\r\n"
    "{body}\n"
)


def parse_authorization_code(request: str) -> Optional[str]:
    """
    Extract the code query parameter from a raw HTTP request.

    Only the request line is inspected. Returns None when no non-empty
    code is present.
    """
    request_line = request.split("\n", 1)[0]
    match = _CODE_PATTERN.search(request_line)
    if not match or not match.group(1):
        return None
    return unquote(match.group(1))


def capture_authorization_code(
    host: str,
    port: int,
    buffer_size: int = CALLBACK_BUFFER_SIZE,
    on_listening: Optional[Callable[[int], None]] = None,
) -> str:
    """
    Wait for the OAuth redirect and return its authorization code.

    Binds one listener, accepts exactly one connection and reads a single
    buffer from it. Blocks without timeout until the browser connects.

    Args:
        host: Interface to bind
        port: Port to bind (0 picks a free port, reported to on_listening)
        buffer_size: Maximum number of request bytes read
        on_listening: Called with the bound port once the socket listens

    Raises:
        AuthFlowError: If binding or accepting fails, or the request
            carries no code
    """
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        listener.bind((host, port))
        listener.listen(1)
    except OSError as e:
        listener.close()
        raise AuthFlowError(f"Cannot listen on {host}:{port}: {e}") from e

    with listener:
        bound_port = listener.getsockname()[1]
        logger.info(f"Listening for the authorization redirect on {host}:{bound_port}")
        if on_listening:
            on_listening(bound_port)

        try:
            connection, address = listener.accept()
        except OSError as e:
            raise AuthFlowError(f"Failed to accept redirect connection: {e}") from e

        with connection:
            logger.debug(f"Redirect connection from {address[0]}")
            try:
                data = connection.recv(buffer_size)
            except OSError as e:
                raise AuthFlowError(f"Failed to read redirect request: {e}") from e

            code = parse_authorization_code(data.decode("utf-8", errors="replace"))
            _answer_browser(connection, code is not None)

    if code is None:
        raise AuthFlowError("Authorization code not found in the request")
    return code


def _answer_browser(connection: socket.socket, success: bool) -> None:
    if success:
        status, body = "200 OK", "Authorization received. You can close this window."
    else:
        status, body = "400 Bad Request", "No authorization code in the request."
    try:
        connection.sendall(
            _CALLBACK_RESPONSE.format(status=status, body=body).encode("utf-8")
        )
    except OSError as e:
        # the code, if any, was already read
        logger.debug(f"Could not answer the browser: {e}")


class CredentialManager:
    """Owns the authorization-code / refresh / access token lifecycle."""

    def __init__(
        self,
        config: Config,
        token_store: TokenStore,
        session: Optional[requests.Session] = None,
        clock: Optional[Callable[[], datetime]] = None,
        code_receiver: Optional[Callable[[], str]] = None,
        open_browser: bool = True,
    ):
        self.config = config
        self.token_store = token_store
        self.session = session or requests.Session()
        self.open_browser = open_browser
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._code_receiver = code_receiver or self._receive_code
        self._refresh_lock = threading.Lock()
        self.progress_callback: Optional[Callable[[str], None]] = None

    def set_progress_callback(self, callback: Callable[[str], None]) -> None:
        """Set callback for authentication progress updates."""
        self.progress_callback = callback

    def _notify_progress(self, message: str) -> None:
        if self.progress_callback:
            self.progress_callback(message)
        logger.info(message)

    def ensure_tokens(self) -> str:
        """
        Bring the token store to a state holding a valid access token.

        Steps run in a fixed order and each depends on the previous one:
        capture auth_code, exchange it for a refresh token, then refresh
        the access token if it is missing or expired.

        Returns:
            The valid access token

        Raises:
            AuthFlowError: If the authorization code cannot be captured
            TokenExchangeError: If either grant exchange fails
        """
        if not self.token_store.exists(TokenKey.AUTH_CODE):
            self.authorize()

        if not self.token_store.exists(TokenKey.REFRESH_TOKEN):
            self.exchange_authorization_code()

        if (
            not self.token_store.exists(TokenKey.ACCESS_TOKEN)
            or self.is_access_token_expired()
        ):
            self.refresh_access_token()

        return self.token_store.get(TokenKey.ACCESS_TOKEN)

    def authorize(self) -> str:
        """Capture a new authorization code and store it."""
        self._notify_progress("Authorization code not found, starting authorization")
        code = self._code_receiver()
        self.token_store.set(TokenKey.AUTH_CODE, code)
        self._notify_progress("Authorization code saved")
        return code

    def _receive_code(self) -> str:
        self._display_auth_instructions(self.config.authorize_url)
        return capture_authorization_code(
            self.config.callback_host, self.config.callback_port
        )

    def _display_auth_instructions(self, auth_url: str) -> None:
        """Display authentication instructions to user."""
        print("\nSpotify Authorization Required")
        print(f"Please authorize the app by visiting: {auth_url}")
        print(
            f"Waiting for the redirect on "
            f"{self.config.callback_host}:{self.config.callback_port}...\n"
        )

        if self.open_browser:
            try:
                import webbrowser

                webbrowser.open(auth_url)
            except Exception as e:
                logger.warning(f"Could not auto-open browser: {e}")

    def exchange_authorization_code(self) -> TokenResponse:
        """Trade the stored authorization code for refresh and access tokens."""
        self._notify_progress("Fetching refresh token...")
        auth_code = self.token_store.get(TokenKey.AUTH_CODE)

        token = self._request_token(
            {
                "grant_type": "authorization_code",
                "code": auth_code,
                "redirect_uri": self.config.redirect_uri or "",
                "client_id": self.config.spotify_client_id or "",
                "client_secret": self.config.spotify_client_secret or "",
            }
        )

        if token.refresh_token:
            self.token_store.set(TokenKey.REFRESH_TOKEN, token.refresh_token)
            logger.info("Refresh token set")
        else:
            logger.warning("No refresh token received")

        self._store_access_token(token)
        return token

    def refresh_access_token(self) -> TokenResponse:
        """Mint a new access token from the stored refresh token."""
        self._notify_progress("Access token expired/not found, getting new access token")
        try:
            refresh_token = self.token_store.get(TokenKey.REFRESH_TOKEN)
        except TokenNotFoundError as e:
            raise TokenExchangeError("No refresh token available to refresh with") from e

        token = self._request_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.config.spotify_client_id or "",
                "client_secret": self.config.spotify_client_secret or "",
            }
        )

        # Spotify may rotate the refresh token
        if token.refresh_token and token.refresh_token != refresh_token:
            self.token_store.set(TokenKey.REFRESH_TOKEN, token.refresh_token)
            logger.info("Refresh token rotated")

        self._store_access_token(token)
        return token

    def _request_token(self, data: Dict[str, str]) -> TokenResponse:
        grant = data["grant_type"]
        try:
            response = self.session.post(
                SPOTIFY_TOKEN_URL,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise TokenExchangeError(f"{grant} request failed: {e}") from e

        logger.debug(f"Token endpoint answered {response.status_code} for {grant}")

        if not response.ok:
            raise TokenExchangeError(
                f"{grant} grant rejected with status {response.status_code}: "
                f"{response.text[:200]}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TokenExchangeError(f"{grant} response is not valid JSON") from e

        return TokenResponse.from_payload(payload)

    def _store_access_token(self, token: TokenResponse) -> None:
        expiry = self._clock() + timedelta(seconds=token.expires_in)
        self.token_store.set(TokenKey.ACCESS_TOKEN, token.access_token)
        self.token_store.set(TokenKey.EXPIRY, expiry.isoformat())
        logger.info(f"Access token set, expires at {expiry.isoformat()}")

    def token_expiry(self) -> Optional[datetime]:
        """Stored expiry instant, or None when absent or unreadable."""
        try:
            raw = self.token_store.get(TokenKey.EXPIRY)
        except TokenNotFoundError:
            return None

        try:
            expiry = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unreadable token expiry {raw!r}")
            return None

        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return expiry

    def is_access_token_expired(self) -> bool:
        """
        Whether the stored access token must be refreshed.

        An expiry equal to now counts as expired. A missing or unreadable
        expiry also counts as expired.
        """
        expiry = self.token_expiry()
        if expiry is None:
            return True
        return expiry <= self._clock()

    def access_token(self) -> str:
        """
        Return a currently valid access token.

        Refreshes first when the stored token has expired. Concurrent
        callers are serialized so one expiry triggers one refresh.
        """
        with self._refresh_lock:
            if (
                not self.token_store.exists(TokenKey.ACCESS_TOKEN)
                or self.is_access_token_expired()
            ):
                self.refresh_access_token()
            return self.token_store.get(TokenKey.ACCESS_TOKEN)
