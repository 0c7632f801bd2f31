import enum
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from flask_login import UserMixin
from sqlalchemy.orm import relationship, validates

from invoice_tracker import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class InvoiceState(str, enum.Enum):
    """Lifecycle states an invoice can be persisted in."""

    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"

    @classmethod
    def parse(cls, value) -> Optional["InvoiceState"]:
        """Return the member matching ``value`` or ``None`` when unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)

    # Deleting an account removes every invoice it owns.
    invoices = db.relationship(
        "Invoice",
        back_populates="owner",
        lazy=True,
        cascade="all, delete-orphan",
    )

    @validates("email")
    def _normalize_email(self, key, value):
        return value.strip().lower() if value else value

    @validates("first_name", "last_name")
    def _normalize_name(self, key, value):
        return value.strip().title() if value else value

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def is_active(self):
        return bool(self.active)


class Invoice(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
    )
    buyer_name = db.Column(db.String(255), nullable=False, index=True)
    phone_number = db.Column(db.String(20), nullable=False)
    issue_date = db.Column(db.Date, nullable=False)
    expiry_date = db.Column(db.Date, nullable=False, index=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    state = db.Column(
        db.Enum(
            InvoiceState,
            name="invoice_state",
            native_enum=False,
            create_constraint=True,
            validate_strings=True,
            values_callable=lambda states: [s.value for s in states],
        ),
        nullable=False,
        default=InvoiceState.SENT,
        server_default=InvoiceState.SENT.value,
        index=True,
    )
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    owner = relationship("User", back_populates="invoices")

    __table_args__ = (
        db.Index("ix_invoice_user_state", "user_id", "state"),
        db.Index("ix_invoice_user_expiry", "user_id", "expiry_date"),
        db.Index(
            "ix_invoice_user_state_expiry", "user_id", "state", "expiry_date"
        ),
    )

    # ------------------------------------------------------------------
    # Lifecycle
    def effective_state_on(self, today: date) -> InvoiceState:
        from invoice_tracker.services.lifecycle import effective_state

        return effective_state(self, today)

    @property
    def effective_state(self) -> InvoiceState:
        """The state to show users, computed for the configured current date."""
        from invoice_tracker.utils.clock import current_date

        return self.effective_state_on(current_date())

    # ------------------------------------------------------------------
    # Phone projections
    @property
    def formatted_phone_number(self) -> Optional[str]:
        from invoice_tracker.utils.phone import e164

        return e164(self.phone_number)

    @property
    def phone_country_code(self) -> Optional[str]:
        from invoice_tracker.utils.phone import country_code

        return country_code(self.phone_number)

    @property
    def phone_type(self) -> Optional[str]:
        from invoice_tracker.utils.phone import line_type

        return line_type(self.phone_number)

    # ------------------------------------------------------------------
    @property
    def formatted_amount(self) -> str:
        from invoice_tracker.utils.text import format_currency

        return format_currency(self.amount)

    def to_form_data(self) -> dict[str, str]:
        """Return the stored values in the shape :class:`InvoiceForm` accepts."""
        return {
            "buyer_name": self.buyer_name or "",
            "phone_number": self.phone_number or "",
            "issue_date": self.issue_date.isoformat() if self.issue_date else "",
            "expiry_date": (
                self.expiry_date.isoformat() if self.expiry_date else ""
            ),
            "amount": str(self.amount) if self.amount is not None else "",
            "state": self.state.value if self.state else "",
        }

    def to_dict(self, today: date) -> dict:
        from invoice_tracker.services.lifecycle import status_badge

        amount = self.amount if self.amount is not None else Decimal("0")
        return {
            "id": self.id,
            "buyer_name": self.buyer_name,
            "phone_number": self.phone_number,
            "formatted_phone_number": self.formatted_phone_number,
            "phone_country_code": self.phone_country_code,
            "phone_type": self.phone_type,
            "issue_date": self.issue_date.isoformat(),
            "expiry_date": self.expiry_date.isoformat(),
            "amount": f"{amount:.2f}",
            "formatted_amount": self.formatted_amount,
            "state": self.state.value,
            "effective_state": self.effective_state_on(today).value,
            "status_class": status_badge(self, today),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Setting(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)
    value = db.Column(db.String(255))

    @classmethod
    def get_value(cls, name: str, default: Optional[str] = None):
        """Return the stored value for ``name`` or ``default`` when unset."""

        setting = cls.query.filter_by(name=name).first()
        if setting is None or not setting.value:
            return default
        return setting.value

    @classmethod
    def set_value(cls, name: str, value: str):
        setting = cls.query.filter_by(name=name).first()
        if setting is None:
            setting = cls(name=name)
            db.session.add(setting)
        setting.value = value
        return setting
