# ptmanage/models/clients.py
import json
from dataclasses import dataclass, field, asdict
from typing import Callable, Optional

from ptmanage.config import DEFAULT_TIME_SLOT, PAYMENT_FREQUENCIES
from ptmanage.models.sessions import Session, new_id, sorted_by_date_time
from ptmanage.utils.amount_parser import parse_amount
from ptmanage.utils.dates import now_utc_iso, try_parse_date


class ValidationError(ValueError):
    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


@dataclass(frozen=True)
class PaymentPlan:
    enabled: bool
    frequency: str               # weekly / monthly
    amount: float
    count: int

    @property
    def total(self) -> float:
        return self.amount * self.count

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @staticmethod
    def from_json(s) -> Optional["PaymentPlan"]:
        s = (s or "").strip() if isinstance(s, str) else ""
        if not s:
            return None
        try:
            d = json.loads(s)
            return PaymentPlan(
                enabled=bool(d.get("enabled", False)),
                frequency=str(d.get("frequency", "monthly")),
                amount=float(d.get("amount", 0) or 0),
                count=int(d.get("count", 1) or 1),
            )
        except (ValueError, TypeError, AttributeError):
            return None


# -----------------------------
# Data model
# -----------------------------
@dataclass(frozen=True)
class Client:
    client_id: str
    name: str
    start_date: str              # YYYY-MM-DD
    expiry_date: str             # YYYY-MM-DD
    email: str = ""
    phone: str = ""
    default_time_slot: str = DEFAULT_TIME_SLOT
    total_fee: float = 0.0
    paid_amount: float = 0.0
    notes: str = ""
    sessions: list[Session] = field(default_factory=list)
    created_at: str = ""
    payment_plan: Optional[PaymentPlan] = None

    @staticmethod
    def create(
        *,
        name: str,
        start_date,
        expiry_date,
        email: str = "",
        phone: str = "",
        default_time_slot: str = DEFAULT_TIME_SLOT,
        total_fee=0,
        paid_amount=0,
        notes: str = "",
        sessions: Optional[list[Session]] = None,
        payment_plan: Optional[PaymentPlan] = None,
        client_id: Optional[str] = None,
        created_at: Optional[str] = None,
        id_factory: Callable[[], str] = new_id,
    ) -> "Client":
        """
        Validate the form values and build the record. Nothing is
        constructed when validation fails; every problem is reported at once.
        """
        errors: list[str] = []
        if not (name or "").strip():
            errors.append("Name is required.")

        sd = try_parse_date(start_date)
        ed = try_parse_date(expiry_date)
        if sd is None or ed is None:
            errors.append("Start/expiry dates must be valid ISO dates (YYYY-MM-DD).")
        elif ed < sd:
            errors.append("Expiry date must be on/after start date.")

        fee = _amount_or_error(total_fee, "Total fee", errors, allow_negative=False)
        paid = _amount_or_error(paid_amount, "Paid amount", errors, allow_negative=True)

        if payment_plan is not None and payment_plan.enabled:
            if payment_plan.frequency not in PAYMENT_FREQUENCIES:
                errors.append(f"Payment frequency must be one of {', '.join(PAYMENT_FREQUENCIES)}.")
            if payment_plan.count < 1:
                errors.append("Payment plan needs at least one payment.")
            if payment_plan.amount < 0:
                errors.append("Payment plan amount cannot be negative.")

        if errors:
            raise ValidationError(errors)

        return Client(
            client_id=client_id or id_factory(),
            name=name.strip(),
            email=(email or "").strip(),
            phone=(phone or "").strip(),
            start_date=sd.isoformat(),
            expiry_date=ed.isoformat(),
            default_time_slot=(default_time_slot or DEFAULT_TIME_SLOT).strip(),
            total_fee=fee,
            paid_amount=paid,
            notes=notes or "",
            sessions=sorted_by_date_time(sessions or []),
            created_at=created_at or now_utc_iso(),
            payment_plan=payment_plan if (payment_plan is not None and payment_plan.enabled) else None,
        )


def _amount_or_error(value, label: str, errors: list[str], *, allow_negative: bool) -> float:
    try:
        return parse_amount(value, allow_negative=allow_negative)
    except ValueError as e:
        errors.append(f"{label}: {e}")
        return 0.0
