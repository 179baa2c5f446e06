from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal


class FormatterService:
    """
    Formatação no padrão brasileiro usada nas mensagens
    (R$ 1.234,56 e DD/MM/AAAA).
    """

    def __init__(self, currency_symbol: str = "R$"):
        self.currency_symbol = currency_symbol

    def format_currency(self, amount: Decimal | float | int | None) -> str:
        if amount is None:
            return "—"
        amt = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        # agrupamento americano e troca de separadores
        us_str = f"{amt:,.2f}"
        integer_part, decimal_part = us_str.split(".")
        integer_brl = integer_part.replace(",", ".")
        return f"{self.currency_symbol} {integer_brl},{decimal_part}"

    def format_date(self, d: date | datetime | None) -> str:
        if d is None:
            return "—"
        if isinstance(d, datetime):
            d = d.date()
        return d.strftime("%d/%m/%Y")
