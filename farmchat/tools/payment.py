"""farmchat/tools/payment.py

Static UPI payment guidance returned by the ``get_payment_info`` tool.
"""

from __future__ import annotations

# Standard Library
import copy
from typing import Any, Final

_PAYMENT_INFO: Final[dict[str, Any]] = {
    "supportedMethods": ["UPI", "Google Pay", "PhonePe", "Paytm", "BHIM"],
    "process": [
        "1. Complete your order in the chat",
        "2. Scan the UPI QR code with any UPI app",
        "3. Enter the exact amount shown",
        "4. Complete payment and take screenshot",
        "5. Share screenshot with seller for verification",
    ],
    "tips": [
        "All major UPI apps work with our QR codes",
        "No extra charges for UPI payments",
        "Payment verification is manual by sellers",
        "Keep payment screenshot for your records",
    ],
    "troubleshooting": {
        "QR not scanning": "Try different UPI app or check camera permissions",
        "Payment failed": "Check bank balance and internet connection",
        "Amount mismatch": "Enter exact amount shown in order details",
    },
}


def payment_guidance(question: str) -> dict[str, Any]:
    """Return the payment guidance payload.

    The question is accepted for the tool signature only; the payload is the
    same for every question. A deep copy is returned so callers cannot mutate
    the shared template.
    """
    del question
    return {"success": True, "paymentInfo": copy.deepcopy(_PAYMENT_INFO)}
