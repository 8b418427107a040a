"""End-to-end OAuth rotation flow

Init -> BuildingRequest -> AwaitingBrowser -> CodeExtracted -> Exchanging
-> Persisted, with a Failed edge out of every state. One account, one
attempt per invocation; the flow never retries itself.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from accounts.profiles import ProfileLocator
from accounts.store import Account, AccountStore
from settings import CLIENT_ID, REDIRECT_URI, SCOPES
from utils.storage import CredentialStorage
from .authorization import build_authorize_url
from .browser_session import BrowserSessionDriver
from .exceptions import ProfileMissingError, TokenExchangeError
from .models import PKCEContext, TokenBundle
from .pkce import generate_context
from .token_exchange import exchange_code

logger = logging.getLogger(__name__)


class FlowState(str, Enum):
    INIT = "init"
    BUILDING_REQUEST = "building_request"
    AWAITING_BROWSER = "awaiting_browser"
    CODE_EXTRACTED = "code_extracted"
    EXCHANGING = "exchanging"
    PERSISTED = "persisted"
    FAILED = "failed"


@dataclass
class FlowContext:
    """Everything one rotation attempt knows, threaded through the flow

    PKCE values live here and die with the attempt; nothing is global.
    """
    account: Account
    state: FlowState = FlowState.INIT
    pkce: Optional[PKCEContext] = None
    authorize_url: Optional[str] = None
    code: Optional[str] = None
    bundle: Optional[TokenBundle] = None
    failure_reason: Optional[str] = None
    history: List[FlowState] = field(default_factory=lambda: [FlowState.INIT])

    @property
    def succeeded(self) -> bool:
        return self.state is FlowState.PERSISTED

    def advance(self, state: FlowState):
        logger.debug(f"[{self.account.id}] {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def fail(self, reason: str):
        logger.error(f"[{self.account.id}] Flow failed in {self.state.value}: {reason}")
        self.failure_reason = reason
        self.advance(FlowState.FAILED)


ExchangeFn = Callable[..., Awaitable[TokenBundle]]


class OAuthOrchestrator:
    """Composes PKCE, the browser driver and the token exchange"""

    def __init__(
        self,
        store: AccountStore,
        profiles: ProfileLocator,
        driver: BrowserSessionDriver,
        credentials: CredentialStorage,
        exchange: ExchangeFn = exchange_code,
        client_id: str = CLIENT_ID,
        redirect_uri: str = REDIRECT_URI,
        scope: str = SCOPES,
    ):
        self.store = store
        self.profiles = profiles
        self.driver = driver
        self.credentials = credentials
        self.exchange = exchange
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.scope = scope

    def select_account(self, account_id: Optional[str] = None) -> Account:
        """Explicit id if given, else the least recently used account

        Raises:
            ConfigurationError: Unknown id, empty roster or missing profile
        """
        account = self.store.get(account_id) if account_id else self.store.least_recently_used()
        if not self.profiles.exists(account.id):
            raise ProfileMissingError(account.id, self.profiles.user_data_dir(account.id))
        return account

    async def perform_oauth_flow(self, account: Account) -> FlowContext:
        """Run one attempt for the account, up to and including persistence

        Raises:
            PersistenceError: If the credential file could not be written
        """
        flow = FlowContext(account=account)
        logger.info(f"Switching to account: {account.describe()}")

        flow.advance(FlowState.BUILDING_REQUEST)
        flow.pkce = generate_context()
        flow.authorize_url = build_authorize_url(
            flow.pkce,
            client_id=self.client_id,
            redirect_uri=self.redirect_uri,
            scope=self.scope,
        )

        flow.advance(FlowState.AWAITING_BROWSER)
        result = await self.driver.complete_consent(
            self.profiles.user_data_dir(account.id),
            flow.authorize_url,
            flow.pkce.state,
        )
        if not result.completed:
            flow.fail(result.reason or "browser_flow_failed")
            return flow
        flow.code = result.code
        flow.advance(FlowState.CODE_EXTRACTED)

        flow.advance(FlowState.EXCHANGING)
        try:
            flow.bundle = await self.exchange(
                flow.code,
                flow.pkce.verifier,
                state=flow.pkce.state,
                client_id=self.client_id,
                redirect_uri=self.redirect_uri,
                default_scopes=self.scope,
            )
        except TokenExchangeError as e:
            flow.fail(str(e))
            return flow

        self.credentials.save_bundle(flow.bundle)
        flow.advance(FlowState.PERSISTED)
        return flow

    async def rotate(self, account_id: Optional[str] = None) -> bool:
        """Rotate the active credentials to one account

        Configuration problems raise before any browser is launched.

        Returns:
            True if the credentials now belong to the selected account
        """
        return await self.rotate_account(self.select_account(account_id))

    async def rotate_account(self, account: Account) -> bool:
        """Run the flow for an already selected account and mark it used"""
        self.driver.resolve_executable()

        flow = await self.perform_oauth_flow(account)
        if not flow.succeeded:
            return False

        self.store.mark_used(account.id)
        logger.info(f"Successfully switched to {account.describe()}")
        return True
