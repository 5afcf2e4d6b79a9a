"""Order confirmation template, sent once payment succeeds."""


class OrderConfirmationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        name = context.get("customer_name") or "there"
        total = context.get("total_amount", 0.0)
        currency = context.get("currency", "NGN")
        lines = "\n".join(
            f"  {item['quantity']} x {item['name']} @ {currency} {item['price']:,.2f}"
            for item in context.get("items", [])
        )
        return {
            "subject": f"Order #{order_id} Confirmed",
            "text": (
                f"Hi {name},\n\n"
                f"We received your payment for order #{order_id}.\n\n"
                f"{lines}\n\n"
                f"Order Total: {currency} {total:,.2f}\n\n"
                "We'll let you know once your order ships."
            ),
            "html": (
                f"<p>Hi {name},</p>"
                f"<p>We received your payment for order <strong>#{order_id}</strong>.</p>"
                f"<p>Order Total: {currency} {total:,.2f}</p>"
            ),
        }
