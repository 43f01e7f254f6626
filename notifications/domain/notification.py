"""
Access key notification value object.
"""
from dataclasses import dataclass
from html import escape

SUBJECT = "Zepia - Checkout Completed"
RENEWAL_SUBJECT = "Zepia - Subscription Renewed"


@dataclass(frozen=True)
class AccessKeyNotification:
    """Message telling a purchaser which access key their payment activated."""

    recipient_email: str
    access_key: str
    is_renewal: bool = False

    @property
    def subject(self) -> str:
        return RENEWAL_SUBJECT if self.is_renewal else SUBJECT

    @property
    def intro(self) -> str:
        if self.is_renewal:
            return (
                "Your subscription has been renewed. "
                "You can keep using your existing access key:"
            )
        return "Thank you for your purchase. Here is your access key:"

    @property
    def body(self) -> str:
        """Plain-text email body."""
        return (
            f"{self.intro}\n\n"
            f"    {self.access_key}\n\n"
            "Keep this key private. It grants access to your subscription.\n"
        )

    @property
    def html_body(self) -> str:
        return (
            f"<p>{escape(self.intro)}</p>"
            f"<p><code>{escape(self.access_key)}</code></p>"
            "<p>Keep this key private. It grants access to your subscription.</p>"
        )
