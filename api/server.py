"""
BorrowHook API Server - FastAPI surface over one hook instance

Endpoints:
- GET  /health                               Heartbeat
- GET  /status                               Domain, capability holders, counts
- POST /auth                                 Wallet signature -> bearer token
- GET  /whitelist/{account}                  Membership
- GET  /nonce/{account}                      Current replay counter
- GET  /capabilities/{account}               Capabilities held
- POST /whitelist/add                        DIRECT_WHITELISTER (auth)
- POST /whitelist/remove                     DIRECT_WHITELISTER (auth)
- POST /whitelist/add-batch                  DIRECT_WHITELISTER (auth)
- POST /whitelist/remove-batch               DIRECT_WHITELISTER (auth)
- POST /capabilities/grant                   OWNER (auth)
- POST /capabilities/revoke                  OWNER (auth)
- POST /whitelist/authorize-with-signature   Anyone may relay a signer's authorization
- POST /hook/before-borrow                   Pool-facing decision
- GET  /events                               Recent audit events

The bearer token only establishes which wallet is calling. Whether that
wallet may act is decided by the hook's capability registry.
"""

import time
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Header
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, model_validator

from hook.accounts import normalize
from hook.borrow_hook import BorrowHook
from hook.errors import Unauthorized, SignatureExpired, InvalidSignature
from hook.roles import Capability, CAPABILITY_MAP
from hook.signatures import join_signature

from .auth import (
    TokenSigner,
    AuthToken,
    verify_signature,
    parse_auth_message,
    MAX_MESSAGE_AGE_SECONDS,
)

logger = logging.getLogger("borrowhook.api")

MAX_BATCH_SIZE = 500


# ============================================================
# MODELS
# ============================================================

class AuthRequest(BaseModel):
    """Wallet signature for authentication."""
    wallet: str = Field(..., max_length=200)
    message: str = Field(..., max_length=500)
    signature: str = Field(..., max_length=500)


class AuthResponse(BaseModel):
    token: str
    wallet: str
    expires_in: int


class AccountRequest(BaseModel):
    account: str = Field(..., max_length=200)


class BatchRequest(BaseModel):
    accounts: list[str] = Field(..., min_length=1, max_length=MAX_BATCH_SIZE)


class CapabilityRequest(BaseModel):
    capability: str     # owner, whitelister, signer
    account: str = Field(..., max_length=200)


class SignatureAuthorizationRequest(BaseModel):
    """Either `signature` (65-byte hex) or the v/r/s triple."""
    account: str = Field(..., max_length=200)
    deadline: int = Field(..., ge=0)
    signature: Optional[str] = Field(None, max_length=200)
    v: Optional[int] = None
    r: Optional[str] = Field(None, max_length=100)
    s: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def _one_signature_form(self):
        has_vrs = self.v is not None and self.r is not None and self.s is not None
        if not self.signature and not has_vrs:
            raise ValueError("provide either signature or v, r and s")
        return self


class SignatureAuthorizationResponse(BaseModel):
    account: str
    nonce_consumed: int
    whitelisted: bool = True


class BeforeBorrowRequest(BaseModel):
    requester: str = Field(..., max_length=200)
    on_behalf_of: str = Field(..., max_length=200)
    asset: str = Field(..., max_length=200)
    amount: int = Field(..., ge=0)
    rate_mode: int = Field(..., ge=0, le=2)


class BeforeBorrowResponse(BaseModel):
    allowed: bool


# ============================================================
# SERVER FACTORY
# ============================================================

def create_app(
    hook: BorrowHook,
    auth_secret: str,
    auth_ttl_seconds: int = 3600,
    allowed_origins: Optional[list[str]] = None,
) -> FastAPI:
    """Create FastAPI app wired to one BorrowHook instance."""
    signer = TokenSigner(auth_secret, ttl_seconds=auth_ttl_seconds)

    app = FastAPI(
        title="BorrowHook",
        description="Whitelist authorization gate for lending pool borrows",
        version="1.0.0",
    )

    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # ── HELPERS ──

    def _get_auth(authorization: Optional[str]) -> AuthToken:
        if not authorization or not authorization.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="Missing auth token")
        auth = signer.verify_token(authorization[len("Bearer "):])
        if not auth:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        return auth

    def _account(value: str) -> str:
        try:
            return normalize(value)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    def _capability(value: str) -> Capability:
        capability = CAPABILITY_MAP.get(value.strip().lower())
        if capability is None:
            raise HTTPException(
                status_code=422,
                detail=f"Unknown capability '{value}' (expected one of {sorted(CAPABILITY_MAP)})",
            )
        return capability

    def _forbidden(e: Unauthorized) -> HTTPException:
        logger.warning(f"Unauthorized call: {e}")
        return HTTPException(status_code=403, detail=str(e))

    # ── PUBLIC ──

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "borrowhook", "time": int(time.time())}

    @app.get("/status")
    async def status():
        return hook.get_status()

    @app.post("/auth")
    async def authenticate(req: AuthRequest):
        """Exchange a signed login message for a bearer token."""
        recovered = verify_signature(req.message, req.signature)
        if not recovered or recovered.lower() != req.wallet.lower():
            raise HTTPException(status_code=401, detail="Signature verification failed")

        try:
            ts = parse_auth_message(req.message)
        except ValueError:
            raise HTTPException(status_code=401, detail="Invalid message format")
        if abs(time.time() - ts) > MAX_MESSAGE_AGE_SECONDS:
            raise HTTPException(status_code=401, detail="Message expired (>5 min)")

        return AuthResponse(
            token=signer.create_token(recovered),
            wallet=recovered,
            expires_in=signer.ttl_seconds,
        )

    @app.get("/whitelist/{account}")
    async def get_whitelisted(account: str):
        account = _account(account)
        return {"account": account, "whitelisted": hook.is_whitelisted(account)}

    @app.get("/nonce/{account}")
    async def get_nonce(account: str):
        account = _account(account)
        return {"account": account, "nonce": hook.nonce_of(account)}

    @app.get("/capabilities/{account}")
    async def get_capabilities(account: str):
        account = _account(account)
        return {
            "account": account,
            "capabilities": [c.value for c in Capability if hook.has_capability(c, account)],
        }

    @app.get("/events")
    async def get_events(limit: int = 20, name: Optional[str] = None):
        limit = max(1, min(limit, 200))
        return {"events": hook.events.get_events_json(limit, name)}

    # ── WHITELISTER ENDPOINTS (auth required) ──

    @app.post("/whitelist/add")
    async def add_to_whitelist(req: AccountRequest, authorization: Optional[str] = Header(None)):
        auth = _get_auth(authorization)
        account = _account(req.account)
        try:
            hook.add_to_whitelist(auth.wallet, account)
        except Unauthorized as e:
            raise _forbidden(e)
        return {"account": account, "whitelisted": True}

    @app.post("/whitelist/remove")
    async def remove_from_whitelist(req: AccountRequest, authorization: Optional[str] = Header(None)):
        auth = _get_auth(authorization)
        account = _account(req.account)
        try:
            hook.remove_from_whitelist(auth.wallet, account)
        except Unauthorized as e:
            raise _forbidden(e)
        return {"account": account, "whitelisted": False}

    @app.post("/whitelist/add-batch")
    async def add_to_whitelist_batch(req: BatchRequest, authorization: Optional[str] = Header(None)):
        auth = _get_auth(authorization)
        accounts = [_account(a) for a in req.accounts]
        try:
            hook.add_to_whitelist_batch(auth.wallet, accounts)
        except Unauthorized as e:
            raise _forbidden(e)
        return {"accounts": accounts, "whitelisted": True}

    @app.post("/whitelist/remove-batch")
    async def remove_from_whitelist_batch(req: BatchRequest, authorization: Optional[str] = Header(None)):
        auth = _get_auth(authorization)
        accounts = [_account(a) for a in req.accounts]
        try:
            hook.remove_from_whitelist_batch(auth.wallet, accounts)
        except Unauthorized as e:
            raise _forbidden(e)
        return {"accounts": accounts, "whitelisted": False}

    # ── OWNER ENDPOINTS (auth required) ──

    @app.post("/capabilities/grant")
    async def grant_capability(req: CapabilityRequest, authorization: Optional[str] = Header(None)):
        auth = _get_auth(authorization)
        capability = _capability(req.capability)
        account = _account(req.account)
        try:
            changed = hook.grant(auth.wallet, capability, account)
        except Unauthorized as e:
            raise _forbidden(e)
        return {"account": account, "capability": capability.value, "changed": changed}

    @app.post("/capabilities/revoke")
    async def revoke_capability(req: CapabilityRequest, authorization: Optional[str] = Header(None)):
        auth = _get_auth(authorization)
        capability = _capability(req.capability)
        account = _account(req.account)
        try:
            changed = hook.revoke(auth.wallet, capability, account)
        except Unauthorized as e:
            raise _forbidden(e)
        return {"account": account, "capability": capability.value, "changed": changed}

    # ── DELEGATED AUTHORIZATION (permissionless) ──

    @app.post("/whitelist/authorize-with-signature")
    async def authorize_with_signature(req: SignatureAuthorizationRequest):
        account = _account(req.account)
        if req.signature:
            signature = req.signature
        else:
            try:
                signature = join_signature(req.v, req.r, req.s)
            except ValueError as e:
                raise HTTPException(status_code=422, detail=str(e))

        try:
            consumed = hook.authorize_with_signature(account, req.deadline, signature)
        except SignatureExpired as e:
            raise HTTPException(status_code=400, detail={"error": "SignatureExpired", "message": str(e)})
        except InvalidSignature as e:
            raise HTTPException(status_code=400, detail={"error": "InvalidSignature", "message": str(e)})

        return SignatureAuthorizationResponse(account=account, nonce_consumed=consumed)

    # ── POOL ──

    @app.post("/hook/before-borrow")
    async def before_borrow(req: BeforeBorrowRequest):
        allowed = hook.before_borrow(req.requester, req.on_behalf_of, req.asset, req.amount, req.rate_mode)
        return BeforeBorrowResponse(allowed=allowed)

    return app
