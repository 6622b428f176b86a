from __future__ import annotations

import math
import time
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional

from db import seed
from db.models import CartItem, Product, ProductDraft, SellerDraft, User
from db.storage import Storage
from services.gemini import DescriptionGenerator
from utils.logger import get_logger

_logger = get_logger(__name__)

CART_KEY = "poliMarketCart"
SESSION_KEY = "poliMarketUser"

LOGIN_ERROR = "Invalid username or password."
DUPLICATE_USERNAME_ERROR = "Username already exists."

# errors raised by CartItem/User.from_dict on a badly shaped snapshot
_SNAPSHOT_ERRORS = (TypeError, KeyError, ValueError, AttributeError, OverflowError)


def _as_price(value: Any) -> Optional[float]:
    """Coerce form input to a finite price, None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value if isinstance(value, (int, float)) else str(value).strip())
    except (ValueError, OverflowError):
        return None
    return price if math.isfinite(price) else None


def _as_stock(value: Any) -> Optional[int]:
    """Coerce form input to a whole stock count, None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


@dataclass
class PosState:
    """
    Centralized application state shared by screens.

    Commands are plain synchronous methods that run to completion and mirror
    the cart and session to storage before returning. Derived values
    (cart_total, sellers, form validity) are recomputed on every read.

    Fields:
      - products: catalog, newest first
      - cart: lines pending checkout
      - users: authoritative accounts, passwords included
      - current_user: password-free projection of the logged-in user
      - new_product / new_seller: draft buffers behind the admin forms
    """

    storage: Storage
    generator: DescriptionGenerator

    products: List[Product] = field(default_factory=list)
    cart: List[CartItem] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    current_user: Optional[User] = None
    login_error: Optional[str] = None

    new_product: ProductDraft = field(default_factory=ProductDraft)
    new_seller: SellerDraft = field(default_factory=SellerDraft)
    add_seller_error: Optional[str] = None

    selected_product: Optional[Product] = None
    is_detail_open: bool = False
    is_add_product_open: bool = False
    is_manage_sellers_open: bool = False

    ai_description: str = ""
    is_generating_description: bool = False

    _last_id_ns: int = field(default=0, init=False, repr=False)

    @classmethod
    def initial(cls, storage: Storage, generator: DescriptionGenerator) -> PosState:
        """Seeded state with cart and session restored from storage."""
        state = cls(
            storage=storage,
            generator=generator,
            products=seed.products(),
            users=seed.users(),
        )
        state.cart = state._load_cart()
        state.current_user = state._load_session()
        return state

    # ---------------------------
    # Derived values
    # ---------------------------

    @property
    def cart_total(self) -> float:
        return sum(item.price * item.quantity for item in self.cart)

    @property
    def cart_item_count(self) -> int:
        return sum(item.quantity for item in self.cart)

    @property
    def sellers(self) -> List[User]:
        return [u for u in self.users if u.role == "seller"]

    @property
    def is_new_product_form_valid(self) -> bool:
        return self.new_product.is_valid()

    @property
    def is_new_seller_form_valid(self) -> bool:
        return self.new_seller.is_valid()

    @property
    def ai_error(self) -> Optional[str]:
        return self.generator.error

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    # ---------------------------
    # Persistence
    # ---------------------------

    def _persist_cart(self) -> None:
        self.storage.save(CART_KEY, [item.to_dict() for item in self.cart])

    def _persist_session(self) -> None:
        if self.current_user:
            self.storage.save(SESSION_KEY, self.current_user.to_dict())
        else:
            self.storage.remove(SESSION_KEY)

    def _load_cart(self) -> List[CartItem]:
        raw = self.storage.load(CART_KEY, [])
        try:
            items = [CartItem.from_dict(entry) for entry in raw]
        except _SNAPSHOT_ERRORS as e:
            _logger.warning(f"Ignoring malformed cart snapshot: {e}")
            return []
        return [item for item in items if item.quantity > 0]

    def _load_session(self) -> Optional[User]:
        raw = self.storage.load(SESSION_KEY)
        if raw is None:
            return None
        try:
            return User.from_dict(raw).without_password()
        except _SNAPSHOT_ERRORS as e:
            _logger.warning(f"Ignoring malformed session snapshot: {e}")
            return None

    # ---------------------------
    # Auth
    # ---------------------------

    def login(self, username: str, password: str) -> bool:
        # plain-text comparison, this demo stores no hashes
        user = next(
            (
                u
                for u in self.users
                if u.username == username and u.password == password
            ),
            None,
        )
        if user is None:
            _logger.info(f"Failed login attempt for '{username}'.")
            self.login_error = LOGIN_ERROR
            return False

        self.current_user = user.without_password()
        self.login_error = None
        self._persist_session()
        _logger.info(f"User '{username}' logged in as {user.role}.")
        return True

    def logout(self) -> None:
        if self.current_user:
            _logger.info(f"User '{self.current_user.username}' logged out.")
        self.current_user = None
        self._persist_session()

    # ---------------------------
    # Cart
    # ---------------------------

    def add_to_cart(self, product: Product) -> None:
        if product.stock <= 0:
            return

        if any(item.product_id == product.id for item in self.cart):
            self.cart = [
                replace(item, quantity=item.quantity + 1)
                if item.product_id == product.id
                else item
                for item in self.cart
            ]
        else:
            self.cart = [
                *self.cart,
                CartItem(product.id, product.name, product.price, 1),
            ]
        self._persist_cart()

    def update_quantity(self, product_id: str, delta: int) -> None:
        if not any(item.product_id == product_id for item in self.cart):
            return

        updated = []
        for item in self.cart:
            if item.product_id == product_id:
                quantity = item.quantity + delta
                if quantity <= 0:
                    continue
                item = replace(item, quantity=quantity)
            updated.append(item)
        self.cart = updated
        self._persist_cart()

    def checkout(self) -> Optional[float]:
        """
        Record a sale: take every cart line out of stock and clear the cart.
        Stock is not checked first and may go negative.
        Returns the sale total, or None when the cart is empty.
        """
        if not self.cart:
            return None

        sold = {item.product_id: item.quantity for item in self.cart}
        self.products = [
            replace(p, stock=p.stock - sold[p.id]) if p.id in sold else p
            for p in self.products
        ]

        total = self.cart_total
        _logger.info(
            f"Sale recorded: {self.cart_item_count} item(s), total ${total:.2f}."
        )
        self.cart = []
        self._persist_cart()
        return total

    # ---------------------------
    # Product detail and AI description
    # ---------------------------

    def open_product(self, product: Product) -> None:
        self.selected_product = product
        self.ai_description = ""
        self.is_detail_open = True

    def close_product(self) -> None:
        self.is_detail_open = False
        self.selected_product = None

    async def generate_description(self) -> bool:
        """
        Ask the generator for a blurb about the selected product.

        Only one request runs at a time; a call made while another is in
        flight is ignored and returns False. The result is dropped if a
        different product was selected in the meantime.
        """
        product = self.selected_product
        if product is None:
            return False
        if self.is_generating_description:
            _logger.debug(f"Description already in flight, ignoring '{product.id}'.")
            return False

        self.is_generating_description = True
        self.ai_description = ""
        try:
            description = await self.generator.generate_description(product.name)
        finally:
            self.is_generating_description = False

        if self.selected_product and self.selected_product.id == product.id:
            self.ai_description = description
        return True

    # ---------------------------
    # Add product (admin)
    # ---------------------------

    def open_add_product(self) -> None:
        self.is_add_product_open = True

    def close_add_product(self) -> None:
        self.is_add_product_open = False
        self.new_product = ProductDraft()

    def set_product_field(self, name: str, value: Any) -> None:
        if name == "price":
            value = _as_price(value)
        elif name == "stock":
            value = _as_stock(value)
        elif name in ("name", "image_url"):
            value = "" if value is None else str(value)
        else:
            raise ValueError(f"Unknown product field {name!r}")
        self.new_product = replace(self.new_product, **{name: value})

    def _next_product_id(self) -> str:
        # strictly increasing even when the clock has not ticked
        stamp = max(time.time_ns(), self._last_id_ns + 1)
        self._last_id_ns = stamp
        return f"p{stamp}"

    def add_product(self, draft: Optional[ProductDraft] = None) -> Optional[Product]:
        if draft is None:
            draft = self.new_product
        if not draft.is_valid():
            return None

        product = Product(
            id=self._next_product_id(),
            name=draft.name,
            price=float(draft.price),
            stock=int(draft.stock),
            image_url=draft.image_url,
        )
        self.products = [product, *self.products]
        _logger.info(f"Product '{product.name}' added as {product.id}.")
        self.close_add_product()
        return product

    # ---------------------------
    # Manage sellers (admin)
    # ---------------------------

    def open_manage_sellers(self) -> None:
        self.add_seller_error = None
        self.is_manage_sellers_open = True

    def close_manage_sellers(self) -> None:
        self.is_manage_sellers_open = False

    def set_seller_field(self, name: str, value: str) -> None:
        if name not in ("name", "username"):
            raise ValueError(f"Unknown seller field {name!r}")
        self.new_seller = replace(self.new_seller, **{name: value or ""})
        self.add_seller_error = None

    def add_seller(self, draft: Optional[SellerDraft] = None) -> Optional[User]:
        if draft is None:
            draft = self.new_seller
        if not draft.is_valid():
            return None

        wanted = draft.username.lower()
        if any(u.username.lower() == wanted for u in self.users):
            self.add_seller_error = DUPLICATE_USERNAME_ERROR
            return None

        seller = User(
            username=draft.username,
            role="seller",
            name=draft.name,
            password=seed.DEFAULT_PASSWORD,
        )
        self.users = [*self.users, seller]
        self.new_seller = SellerDraft()
        self.add_seller_error = None
        _logger.info(f"Seller '{seller.username}' added.")
        return seller

    def delete_seller(self, username: str) -> None:
        # no role check here, the UI only offers seller accounts
        remaining = [u for u in self.users if u.username != username]
        if len(remaining) != len(self.users):
            _logger.info(f"Seller '{username}' deleted.")
        self.users = remaining
