from typing import List, Mapping, Tuple

from markupsafe import Markup, escape

from formguard.csrf.guard import CsrfGuard


def hidden_input_html(name: str, value: str) -> Markup:
    return Markup('<input type="hidden" name="{}" value="{}">').format(name, value)


def token_html(guard: CsrfGuard) -> Markup:
    """Hidden input carrying the request's CSRF token, for hand-written forms."""
    return hidden_input_html(guard.field_name, guard.embed_value())


class Form:
    """An HTML form that always carries the CSRF token."""

    def __init__(self, guard: CsrfGuard, action: str, method: str = "post") -> None:
        self.action = action
        self.method = method
        self.hidden_inputs: List[Tuple[str, str]] = []
        self.add_hidden_input(guard.field_name, guard.embed_value())

    def add_hidden_input(self, name: str, value: str) -> "Form":
        self.hidden_inputs.append((name, str(value)))
        return self

    def add_hidden_inputs(self, inputs: Mapping[str, str]) -> "Form":
        for name, value in inputs.items():
            self.add_hidden_input(name, value)
        return self

    def open_tag(self) -> Markup:
        return Markup('<form action="{}" method="{}">').format(self.action, self.method)

    def hidden_html(self) -> Markup:
        return Markup("").join(hidden_input_html(name, value) for name, value in self.hidden_inputs)

    def to_html(self, body: str = "") -> Markup:
        return self.open_tag() + self.hidden_html() + escape(body) + Markup("</form>")
