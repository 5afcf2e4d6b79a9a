"""Payment failure template, sent when the gateway reports a failed charge."""


class PaymentFailedTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        name = context.get("customer_name") or "there"
        return {
            "subject": f"Payment for order #{order_id} failed",
            "text": (
                f"Hi {name},\n\n"
                f"Your payment for order #{order_id} did not go through. "
                "You can retry the payment from your order history."
            ),
            "html": (
                f"<p>Hi {name},</p>"
                f"<p>Your payment for order <strong>#{order_id}</strong> did not go through. "
                "You can retry the payment from your order history.</p>"
            ),
        }
