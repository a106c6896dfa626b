from .user import User  # noqa: F401
from .account import Account  # noqa: F401
from .restriction_source import RestrictionSource  # noqa: F401
from .account_flag import AccountFlag  # noqa: F401
from .shadow_ban import ShadowBan  # noqa: F401
from .system_controls import SystemControls  # noqa: F401
from .audit_log import AuditLog  # noqa: F401
from .withdrawal import Withdrawal  # noqa: F401
from .ledger_entry import LedgerEntry  # noqa: F401

from .approval_requests import (  # noqa: F401
    AccountClosureRequest,
    AccountCreationRequest,
    CryptoWalletRequest,
    DocumentRequest,
    WithdrawalFlag,
    WithdrawalOverride,
)
