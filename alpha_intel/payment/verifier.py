"""
ALPHA INTEL — x402 Payment Verification
Checks that a Stacks transaction is a successful call of the payment
contract, and builds the 402 quote returned to unpaid requests.
"""
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

import aiohttp
from pydantic import BaseModel, ConfigDict

from alpha_intel.config.settings import get_settings
from alpha_intel.utils.helpers import utc_now
from alpha_intel.utils.logger import get_logger

logger = get_logger("payment")


class PaymentVerification(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    error: Optional[str] = None
    caller: Optional[str] = None


def normalize_txid(txid: str) -> str:
    txid = txid.strip()
    return txid if txid.startswith("0x") else f"0x{txid}"


class PaymentVerifier:
    """Looks up a transaction on the Hiro indexer and validates the contract call."""

    def __init__(self):
        settings = get_settings()
        self.payment = settings.payment
        self.hiro_base_url = settings.data.hiro_base_url
        self.timeout_seconds = settings.data.poll_timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)

    async def disconnect(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def _fetch_transaction(self, txid: str) -> Optional[Dict[str, Any]]:
        if not self._session:
            await self.connect()
        async with self._session.get(f"{self.hiro_base_url}/extended/v1/tx/{txid}") as resp:
            if resp.status != 200:
                return None
            return await resp.json(content_type=None)

    def check_transaction(self, tx: Dict[str, Any]) -> PaymentVerification:
        """Validate an indexer transaction record against the payment contract."""
        if tx.get("tx_status") != "success":
            return PaymentVerification(valid=False, error=f"Transaction status: {tx.get('tx_status')}")
        if tx.get("tx_type") != "contract_call":
            return PaymentVerification(valid=False, error="Not a contract call")

        call = tx.get("contract_call") or {}
        if call.get("contract_id") != self.payment.contract_id:
            return PaymentVerification(valid=False, error="Wrong contract")
        if call.get("function_name") != self.payment.function_name:
            return PaymentVerification(valid=False, error="Wrong function")

        return PaymentVerification(valid=True, caller=tx.get("sender_address"))

    async def verify(self, txid: str) -> PaymentVerification:
        try:
            tx = await self._fetch_transaction(normalize_txid(txid))
            if tx is None:
                result = PaymentVerification(valid=False, error="Transaction not found")
            else:
                result = self.check_transaction(tx)
        except Exception as e:
            result = PaymentVerification(valid=False, error=f"Verification failed: {e}")

        if result.valid:
            logger.info("payment_verified", txid=txid, caller=result.caller)
        else:
            logger.warning("payment_verification_failed", txid=txid, error=result.error)
        return result


def payment_required(resource: str, price: int) -> Dict[str, Any]:
    """Body of the 402 response describing how to pay for a resource."""
    payment = get_settings().payment
    expires_at = utc_now() + timedelta(minutes=payment.quote_ttl_minutes)
    return {
        "error": "Payment Required",
        "code": "PAYMENT_REQUIRED",
        "resource": resource,
        "payment": {
            "contract": payment.contract_id,
            "function": payment.function_name,
            "price": price,
            "token": "STX",
            "recipient": payment.recipient,
            "network": payment.network,
        },
        "instructions": [
            "1. Call the contract function with STX payment",
            "2. Wait for transaction confirmation",
            "3. Retry request with X-Payment header containing txid",
        ],
        "nonce": str(uuid.uuid4()),
        "expiresAt": expires_at.isoformat(),
    }


# Singleton
_verifier: Optional[PaymentVerifier] = None


def get_payment_verifier() -> PaymentVerifier:
    global _verifier
    if _verifier is None:
        _verifier = PaymentVerifier()
    return _verifier
