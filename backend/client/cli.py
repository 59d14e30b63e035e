"""
Terminal client for the portfolio contact form.

Usage:
    portfolio-contact --url http://localhost:3000 --name "Jane Doe" ...

Fields not given on the command line are prompted for, with live feedback
after each one.
"""

import argparse
import sys

from client.contact_form import (
    FIELDS,
    ContactFormController,
    FormView,
    Notification,
    NotificationKind,
)
from helpers.contact_validation import FieldStatus

PROMPTS = {
    "name": "Your name",
    "email": "Your email",
    "subject": "Subject",
    "message": "Message",
}


class ConsoleFormView(FormView):
    """FormView backed by command-line arguments and stdin prompts."""

    def __init__(self, values: dict[str, str | None], interactive: bool = True) -> None:
        self.values = {field: values.get(field) or "" for field in FIELDS}
        self.interactive = interactive

    def prompt_missing(self) -> None:
        for field in FIELDS:
            while not self.values[field] and self.interactive:
                value = input(f"{PROMPTS[field]}: ")
                self.values[field] = value
                status = ContactFormController.field_feedback(field, value)
                if status is FieldStatus.INVALID:
                    print(f"  ! {PROMPTS[field]} doesn't look right yet", file=sys.stderr)
                if status is FieldStatus.EMPTY:
                    break

    def get_values(self) -> dict[str, str]:
        return dict(self.values)

    def set_submitting(self, submitting: bool) -> None:
        if submitting:
            print("Sending...", file=sys.stderr)

    def show_notification(self, notification: Notification) -> None:
        prefix = "OK" if notification.kind is NotificationKind.SUCCESS else "ERROR"
        stream = sys.stdout if notification.kind is NotificationKind.SUCCESS else sys.stderr
        print(f"[{prefix}] {notification.message}", file=stream)

    def reset_form(self) -> None:
        self.values = {field: "" for field in FIELDS}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portfolio-contact",
        description="Send a message through the portfolio contact form",
    )
    parser.add_argument(
        "--url", default="http://localhost:3000", help="Base URL of the contact API"
    )
    for field in FIELDS:
        parser.add_argument(f"--{field}", help=PROMPTS[field])
    parser.add_argument(
        "--no-input",
        action="store_true",
        help="Never prompt; missing fields fail validation",
    )
    parser.add_argument(
        "--timeout", type=float, default=10.0, help="Request timeout in seconds"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    view = ConsoleFormView(
        {field: getattr(args, field) for field in FIELDS},
        interactive=not args.no_input,
    )
    try:
        view.prompt_missing()
    except (EOFError, KeyboardInterrupt):
        print("\nCancelled, nothing was sent", file=sys.stderr)
        return 1

    with ContactFormController(view, args.url, timeout=args.timeout) as controller:
        outcome = controller.submit()

    return 0 if outcome.ok else 1


if __name__ == "__main__":
    sys.exit(main())
