"""
Input models for accounts and labels.

Accounts hold no balance: the ``balance`` on an AccountDraft is the value the
user states, which the reconciliation engine turns into a ledger entry.
"""

from dataclasses import dataclass


@dataclass
class AccountDraft:
    """
    Payload for creating or editing an account.

    Attributes:
        name: Display name, unique per owner
        currency: Currency code (display only, no conversion)
        balance: Balance stated by the user
        color: Display color
        icon: Display icon
    """

    name: str
    currency: str
    balance: float = 0.0
    color: str = "#000000"
    icon: str = "wallet"

    def __post_init__(self):
        """Normalize the display name (preserve case for display)."""
        if self.name:
            self.name = self.name.strip()
        if self.currency:
            self.currency = self.currency.strip().upper()

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "currency": self.currency,
            "balance": self.balance,
            "color": self.color,
            "icon": self.icon,
        }


@dataclass
class LabelDraft:
    """Payload for creating a category or a tag."""

    name: str
    color: str = "#000000"
    icon: str = "tag"

    def __post_init__(self):
        if self.name:
            self.name = self.name.strip()

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {"name": self.name, "color": self.color, "icon": self.icon}
