# storefront/services/checkout_service.py
import logging
from typing import Any, Mapping, Optional, Tuple, Union
from ..errors import CheckoutFinalizeError, DomainError, ValidationError
from ..models.checkout import CheckoutRequest, CheckoutResult
from ..models.product import Product, ProductType
from ..models.purchase import CustomerInfo, PaymentStatus, PaymentVerdict, Purchase
from ..stores.interfaces import RecordStore
from ..utils.validation import parse_input
from .capacity_service import CapacityService
from .discount_service import DiscountService, calculate_discounted_price
from .payment_service import PaymentSimulator
from .product_service import ProductService
from .purchase_service import PurchaseService

logger = logging.getLogger(__name__)

class CheckoutService:
    """Coordinates one checkout attempt.

    Pending purchase -> simulated payment -> terminal purchase. Nothing is
    written until the product, price and (for events) a seat are settled.
    """

    def __init__(self, store: RecordStore):
        self.store = store
        self.product_service = ProductService(store)
        self.discount_service = DiscountService(store)
        self.capacity_service = CapacityService(store)
        self.purchase_service = PurchaseService(store)
        self.payment_simulator = PaymentSimulator()

    async def resolve_price(self, product: Product, code: Optional[str]) -> Tuple[int, Optional[str]]:
        """Server side price for the product and the code actually applied"""
        if not code:
            return product.price, None

        discount = await self.discount_service.resolve(code)
        if not discount.active:
            logger.info(f"Discount code {discount.code} is inactive, charging full price")
            return product.price, None

        return calculate_discounted_price(product.price, discount.discount_percentage), discount.code

    async def checkout(self, data: Union[CheckoutRequest, Mapping[str, Any]]) -> CheckoutResult:
        """Run a checkout attempt and return the terminal purchase"""
        request = parse_input(CheckoutRequest, data, "Invalid checkout request")

        product = await self.product_service.get_product_record(request.product_id)
        if product.type != request.product_type:
            raise ValidationError(
                f"Product {product.id} is a {product.type.value}, not a {request.product_type.value}"
            )

        final_price, applied_code = await self.resolve_price(product, request.discount_code)
        if request.expected_price is not None and request.expected_price != final_price:
            logger.warning(
                f"Checkout for {product.id}: caller price {request.expected_price} "
                f"ignored, charging {final_price}"
            )

        customer = CustomerInfo(
            name=request.buyer_name,
            email=request.buyer_email,
            phone=request.buyer_phone,
            address=request.buyer_address,
        )

        if product.type == ProductType.EVENT:
            event = await self.product_service.get_event_details(product.id)
            async with self.capacity_service.seat(product.id, event.capacity):
                purchase = await self._create_pending(product, customer, final_price, applied_code, request)
        else:
            purchase = await self._create_pending(product, customer, final_price, applied_code, request)

        verdict = self.payment_simulator.evaluate(purchase.final_price, purchase.payment_method)
        outcome = PaymentStatus.COMPLETED if verdict == PaymentVerdict.APPROVED else PaymentStatus.FAILED

        try:
            purchase = await self.purchase_service.finalize(purchase.id, outcome)
        except DomainError as e:
            logger.error(
                f"Purchase {purchase.id} left pending after payment {verdict.value}: {e}. "
                f"Manual reconciliation required"
            )
            raise CheckoutFinalizeError(purchase.id) from e

        return CheckoutResult(
            purchase_id=purchase.id,
            status=purchase.payment_status,
            final_price=purchase.final_price,
            verdict=verdict,
            purchase=purchase,
        )

    async def _create_pending(self, product: Product, customer: CustomerInfo, final_price: int,
                              applied_code: Optional[str], request: CheckoutRequest) -> Purchase:
        return await self.purchase_service.create(
            product_id=product.id,
            customer=customer,
            original_price=product.price,
            final_price=final_price,
            discount_code=applied_code,
            payment_method=request.payment_method,
        )
