# storefront/services/payment_service.py
from ..models.purchase import PaymentMethod, PaymentVerdict

# final digits a simulated card payment is declined on
DECLINED_CARD_DIGITS = {8, 9}

def simulate_payment(final_price: int, payment_method: PaymentMethod) -> PaymentVerdict:
    """Deterministic stand-in for a payment gateway.

    Card payments are rejected when the last digit of the price is 8 or 9;
    every other method is approved.
    """
    if final_price < 0:
        raise ValueError("final_price cannot be negative")

    if PaymentMethod(payment_method) == PaymentMethod.CARD and final_price % 10 in DECLINED_CARD_DIGITS:
        return PaymentVerdict.REJECTED
    return PaymentVerdict.APPROVED

class PaymentSimulator:
    """Payment step of the checkout"""

    def evaluate(self, final_price: int, payment_method: PaymentMethod) -> PaymentVerdict:
        return simulate_payment(final_price, payment_method)
