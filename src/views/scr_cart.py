from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.widgets import Button, Label, Rule

from db.models import CartItem
from utils.messages import CartChangedMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class CartLineWidget(HorizontalGroup):
    def __init__(self, item: CartItem):
        super().__init__()
        self.item = item

    def compose(self) -> ComposeResult:
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.item.name, id="label-item-name")
                yield Label(str(self.item.quantity), id="label-item-qty")
                yield Label(format_money(self.item.price), id="label-item-price")
                yield Label(
                    format_money(self.item.price * self.item.quantity),
                    id="label-item-total",
                )
            with Container(id="div-actions"):
                yield Button("-", id="btn-item-dec")
                yield Button("+", id="btn-item-inc")

    @on(Button.Pressed, "#btn-item-dec")
    def handle_decrement(self) -> None:
        self.app.state.update_quantity(self.item.product_id, -1)
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-item-inc")
    def handle_increment(self) -> None:
        self.app.state.update_quantity(self.item.product_id, 1)
        self.post_message(CartChangedMessage())


class CartScreen(BaseScreen):
    """
    Cart lines with quantity controls, plus checkout
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total: $0.00", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Checkout", id="btn-checkout", variant="primary")

    @on(CartChangedMessage)
    @on(ScreenResume)
    @work(exclusive=True)  # must be exclusive, overlapping redraws mount duplicates
    async def handle_cart_change(self):
        state = self.app.state
        cart = state.cart

        self.query_one("#label-cart-total", Label).update(
            f"Total: {format_money(state.cart_total)} ({state.cart_item_count} items)"
        )
        self.query_one("#btn-checkout").disabled = not cart

        content = self.query_one("#vertscroll-content")
        content.set_class(not cart, "no-items")
        if [c.item for c in content.children] == cart:
            return

        await content.remove_children()
        await content.mount_all([CartLineWidget(item) for item in cart])

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        state = self.app.state
        if not state.cart:
            self.app.notify("Cart is empty.", severity="warning")
            return

        confirmed = await self.app.push_screen_wait(
            DialogModal(
                f"Record this sale of {state.cart_item_count} items "
                f"for {format_money(state.cart_total)}?",
                primary_text="Checkout",
                secondary_text="Go Back",
                tone="positive",
            )
        )
        if not confirmed:
            return

        total = state.checkout()
        if total is not None:
            self.notify(f"Sale recorded for a total of {format_money(total)}!")
        self.post_message(CartChangedMessage())
