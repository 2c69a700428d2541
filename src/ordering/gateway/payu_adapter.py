"""PayU hosted checkout adapter.

Request hash:
    sha512(key|txnid|amount|productinfo|firstname|email|udf1|udf2|udf3|udf4|udf5||||||SALT)

Response hash (reverse order, optional additionalCharges prefix):
    sha512([additionalCharges|]SALT|status||||||udf5|udf4|udf3|udf2|udf1|email|firstname|productinfo|amount|txnid|key)
"""

import hashlib
import hmac
import os

from ordering.gateway.port import PaymentGateway

PAYU_PRODUCTION_URL = "https://secure.payu.in/_payment"

_UDF_FIELDS = ("udf1", "udf2", "udf3", "udf4", "udf5")


def request_hash(fields: dict, salt: str) -> str:
    parts = [
        fields.get("key", ""),
        fields.get("txnid", ""),
        fields.get("amount", ""),
        fields.get("productinfo", ""),
        fields.get("firstname", ""),
        fields.get("email", ""),
        *(fields.get(udf) or "" for udf in _UDF_FIELDS),
        "",
        "",
        "",
        "",
        "",
        salt,
    ]
    return hashlib.sha512("|".join(parts).encode()).hexdigest()


def response_hash(fields: dict, salt: str) -> str:
    parts = [
        salt,
        fields.get("status", ""),
        "",
        "",
        "",
        "",
        "",
        *(fields.get(udf) or "" for udf in reversed(_UDF_FIELDS)),
        fields.get("email", ""),
        fields.get("firstname", ""),
        fields.get("productinfo", ""),
        fields.get("amount", ""),
        fields.get("txnid", ""),
        fields.get("key", ""),
    ]
    if fields.get("additionalCharges"):
        parts.insert(0, fields["additionalCharges"])
    return hashlib.sha512("|".join(parts).encode()).hexdigest()


class PayUGateway(PaymentGateway):
    def __init__(self, merchant_key: str | None, merchant_salt: str | None, action_url: str = PAYU_PRODUCTION_URL):
        self.merchant_key = merchant_key or ""
        self._merchant_salt = merchant_salt or ""
        self.action_url = action_url

    @classmethod
    def from_env(cls) -> "PayUGateway":
        return cls(
            merchant_key=os.environ.get("PAYU_MERCHANT_KEY"),
            merchant_salt=os.environ.get("PAYU_MERCHANT_SALT"),
            action_url=os.environ.get("PAYU_ACTION_URL", PAYU_PRODUCTION_URL),
        )

    def is_available(self) -> bool:
        return bool(self.merchant_key and self._merchant_salt)

    def sign_payment_request(self, fields: dict) -> str:
        return request_hash(fields, self._merchant_salt)

    def verify_response(self, fields: dict) -> bool:
        received = fields.get("hash")
        if not received:
            return False
        return hmac.compare_digest(response_hash(fields, self._merchant_salt), received.lower())

    def _callback_secret(self) -> str:
        return self._merchant_salt
