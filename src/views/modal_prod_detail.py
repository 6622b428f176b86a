from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, LoadingIndicator, Markdown, MarkdownViewer

from db.models import Product
from utils.pure import format_money, product_table


class ProdDetailModal(ModalScreen[bool]):
    """
    Product detail, AI description and add to cart.
    Returns True if the cart changed, False if not.
    """

    CSS = """
    #loading-ai {
        height: 3;
    }
    """

    def __init__(self, product: Product) -> None:
        super().__init__()
        self._product_id = product.id
        self._cart_changed = False

    @property
    def product(self) -> Product:
        # catalog entries are replaced on checkout, always read the live one
        return self.app.state.find_product(self._product_id)

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical():
                yield Label("AI Description")
                yield Markdown("", id="md-ai-description")
                yield LoadingIndicator(id="loading-ai")
                yield Label("", id="label-in-cart")
                with Horizontal():
                    yield Button("Generate Description", id="btn-generate")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        self.app.state.open_product(self.product)
        self.query_one("#loading-ai").display = False
        await self.render_product()
        self.query_one("#btn-addcart").focus()

    async def render_product(self) -> None:
        product = self.product
        header_md = f"### Product Detail: {product.name}\n\n"
        await self.query_one(MarkdownViewer).document.update(
            header_md + product_table(product)
        )

        in_cart = next(
            (i.quantity for i in self.app.state.cart if i.product_id == product.id), 0
        )
        self.query_one("#label-in-cart", Label).update(
            f"In cart: {in_cart}  |  {format_money(product.price)} each"
        )

        if product.stock <= 0:
            order_btn = self.query_one("#btn-addcart", Button)
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.close_detail()

    def close_detail(self) -> None:
        self.app.state.close_product()
        self.dismiss(self._cart_changed)

    @on(Button.Pressed, "#btn-generate")
    @work()
    async def handle_generate(self):
        state = self.app.state
        btn = self.query_one("#btn-generate", Button)
        indicator = self.query_one("#loading-ai")
        md = self.query_one("#md-ai-description", Markdown)

        btn.disabled = True
        indicator.display = True
        await md.update("")
        try:
            if not await state.generate_description():
                return
        finally:
            btn.disabled = False
            indicator.display = False

        if state.ai_error:
            self.notify(state.ai_error, severity="error")
        if state.is_detail_open:
            await md.update(state.ai_description)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.close_detail()

    @on(Button.Pressed, "#btn-addcart")
    async def handle_addcart(self):
        self.app.state.add_to_cart(self.product)
        self._cart_changed = True
        self.notify(f"{self.product.name} added to cart.")
        await self.render_product()
