from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label

from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal


class LoginScreen(BaseScreen):
    """
    Dismissed once a login succeeds; the session is then on app.state.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-login"):
            yield Label("Username")
            yield Input(placeholder="mariocas", id="input-login-username")
            yield Label("Password")
            yield Input(placeholder="*********", password=True, id="input-login-pwd")
            yield Label("", id="label-login-error")
            with Horizontal(id="div-login-btns"):
                yield Button("Quit", id="btn-quit")
                yield Button("Login", id="btn-login", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-username").focus()

    @on(Button.Pressed, "#btn-login")
    @on(Input.Submitted, "#input-login-pwd")
    def handle_login_submit(self) -> None:
        username = self.query_one("#input-login-username", Input).value
        input_login_pwd = self.query_one("#input-login-pwd", Input)
        state = self.app.state

        if state.login(username, input_login_pwd.value):
            user = state.current_user
            self.query_one("#input-login-username", Input).value = ""
            input_login_pwd.value = ""
            self.query_one("#label-login-error", Label).update("")
            self.notify(f"Hello {user.name}!")
            self.dismiss()
        else:
            self.query_one("#label-login-error", Label).update(state.login_error)
            self.notify(state.login_error, severity="error")
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")

    @on(Input.Changed, "#input-login-pwd")
    def handle_pwd_changed(self, message: Input.Changed) -> None:
        message.input.remove_class("-invalid")

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
