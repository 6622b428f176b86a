from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label

# input id -> ProductDraft field
FIELD_INPUTS = {
    "input-new-name": "name",
    "input-new-price": "price",
    "input-new-stock": "stock",
    "input-new-image": "image_url",
}


class AddProductModal(ModalScreen[bool]):
    """
    Admin form for a new catalog entry.
    Every keystroke goes to the draft on app.state; the submit button
    follows the draft's validity. Returns True when a product was added.
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="div-add-product"):
            yield Label("New Product", id="label-add-product-title")
            yield Label("Name")
            yield Input(placeholder="Café Colombiano", id="input-new-name")
            yield Label("Price ($)")
            yield Input(
                placeholder="15.50",
                id="input-new-price",
                type="number",
                validators=[Number(minimum=0.01)],
            )
            yield Label("Stock")
            yield Input(
                placeholder="50",
                id="input-new-stock",
                type="integer",
                validators=[Number(minimum=0)],
            )
            yield Label("Image URL")
            yield Input(
                placeholder="https://picsum.photos/400/300", id="input-new-image"
            )
            with Horizontal():
                yield Button("Cancel", id="btn-cancel")
                yield Button(
                    "Save Product", id="btn-save-product", variant="primary", disabled=True
                )

    def on_mount(self):
        self.app.state.open_add_product()
        self.query_one("#input-new-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.cancel()

    def on_input_changed(self, message: Input.Changed) -> None:
        field = FIELD_INPUTS.get(message.input.id)
        if field is None:
            return
        state = self.app.state
        state.set_product_field(field, message.value)
        self.query_one("#btn-save-product").disabled = not state.is_new_product_form_valid

    def cancel(self) -> None:
        self.app.state.close_add_product()
        self.dismiss(False)

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.cancel()

    @on(Button.Pressed, "#btn-save-product")
    def handle_save(self) -> None:
        product = self.app.state.add_product()
        if product is None:
            return
        self.dismiss(True)
