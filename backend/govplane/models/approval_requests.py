from datetime import datetime

from govplane.extensions import db


class ApprovalLifecycleMixin:
    """Columns shared by every approval request table."""

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    requested_by = db.Column(db.String(64), nullable=False)
    requested_by_name = db.Column(db.String(120), nullable=True)
    requested_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    reviewed_by = db.Column(db.String(64), nullable=True)
    reviewed_by_name = db.Column(db.String(120), nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    review_comment = db.Column(db.String(400), nullable=True)
    rejection_reason = db.Column(db.String(400), nullable=True)

    def _lifecycle_dict(self) -> dict:
        return {
            "id": int(self.id),
            "kind": self.kind,
            "status": self.status,
            "requested_by": self.requested_by,
            "requested_by_name": self.requested_by_name or "",
            "requested_at": self.requested_at.isoformat() if self.requested_at else None,
            "reviewed_by": self.reviewed_by,
            "reviewed_by_name": self.reviewed_by_name or "",
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "review_comment": self.review_comment or "",
            "rejection_reason": self.rejection_reason or "",
        }


class CryptoWalletRequest(ApprovalLifecycleMixin, db.Model):
    __tablename__ = "crypto_wallet_requests"
    kind = "crypto_wallet"

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    request_type = db.Column(db.String(8), nullable=False)  # add|update|delete
    wallet_id = db.Column(db.String(64), nullable=False, index=True)
    wallet_data = db.Column(db.JSON, nullable=False, default=dict)
    previous_wallet = db.Column(db.JSON, nullable=True)

    version = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    def to_dict(self):
        data = self._lifecycle_dict()
        data.update({
            "account_id": int(self.account_id),
            "request_type": self.request_type,
            "wallet_id": self.wallet_id,
            "wallet_data": dict(self.wallet_data or {}),
        })
        return data


class AccountCreationRequest(ApprovalLifecycleMixin, db.Model):
    __tablename__ = "account_creation_requests"
    kind = "account_creation"

    id = db.Column(db.Integer, primary_key=True)

    applicant_name = db.Column(db.String(120), nullable=False)
    applicant_email = db.Column(db.String(255), nullable=False, index=True)
    applicant_phone = db.Column(db.String(32), nullable=True)
    applicant_country = db.Column(db.String(64), nullable=False)
    applicant_city = db.Column(db.String(64), nullable=True)

    initial_deposit = db.Column(db.Float, nullable=False, default=0.0)
    account_type = db.Column(db.String(16), nullable=False, default="Standard")
    bank_details = db.Column(db.JSON, nullable=False, default=dict)
    # Document references only; file storage lives outside the control plane.
    documents = db.Column(db.JSON, nullable=False, default=list)

    approval_conditions = db.Column(db.JSON, nullable=False, default=list)
    created_account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=True)

    version = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    @property
    def account_id(self):
        return self.created_account_id

    def to_dict(self):
        data = self._lifecycle_dict()
        data.update({
            "applicant_name": self.applicant_name,
            "applicant_email": self.applicant_email,
            "applicant_phone": self.applicant_phone or "",
            "applicant_country": self.applicant_country,
            "applicant_city": self.applicant_city or "",
            "initial_deposit": float(self.initial_deposit or 0.0),
            "account_type": self.account_type,
            "bank_details": dict(self.bank_details or {}),
            "documents": list(self.documents or []),
            "approval_conditions": list(self.approval_conditions or []),
            "created_account_id": int(self.created_account_id) if self.created_account_id else None,
        })
        return data


class WithdrawalOverride(ApprovalLifecycleMixin, db.Model):
    __tablename__ = "withdrawal_overrides"
    kind = "withdrawal_override"

    id = db.Column(db.Integer, primary_key=True)
    withdrawal_id = db.Column(db.Integer, db.ForeignKey("withdrawals.id"), nullable=False, index=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    previous_status = db.Column(db.String(20), nullable=True)
    new_status = db.Column(db.String(20), nullable=False)  # Approved|Rejected|Credited|Refunded
    reason = db.Column(db.String(400), nullable=False)
    required_documents = db.Column(db.JSON, nullable=False, default=list)
    refund_entry_id = db.Column(db.Integer, db.ForeignKey("ledger_entries.id"), nullable=True)

    version = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    def to_dict(self):
        data = self._lifecycle_dict()
        data.update({
            "withdrawal_id": int(self.withdrawal_id),
            "account_id": int(self.account_id),
            "previous_status": self.previous_status or "",
            "new_status": self.new_status,
            "reason": self.reason or "",
            "required_documents": list(self.required_documents or []),
            "refund_entry_id": int(self.refund_entry_id) if self.refund_entry_id else None,
        })
        return data


class DocumentRequest(ApprovalLifecycleMixin, db.Model):
    __tablename__ = "document_requests"
    kind = "document_request"

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    # pending -> submitted -> approved|rejected; pending -> expired
    document_type = db.Column(db.String(32), nullable=False)
    description = db.Column(db.Text(), nullable=False, default="")
    priority = db.Column(db.String(8), nullable=False, default="medium")  # low|medium|high|urgent
    due_date = db.Column(db.DateTime, nullable=True)

    submitted_at = db.Column(db.DateTime, nullable=True)
    submitted_documents = db.Column(db.JSON, nullable=False, default=list)

    version = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    def to_dict(self):
        data = self._lifecycle_dict()
        data.update({
            "account_id": int(self.account_id),
            "document_type": self.document_type,
            "description": self.description or "",
            "priority": self.priority,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "submitted_documents": list(self.submitted_documents or []),
        })
        return data


class AccountClosureRequest(ApprovalLifecycleMixin, db.Model):
    __tablename__ = "account_closure_requests"
    kind = "account_closure"

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    reason = db.Column(db.String(400), nullable=False)
    # Balance when the request was raised; paid out when the countdown ends.
    account_balance = db.Column(db.Float, nullable=False, default=0.0)
    fund_transfer_method = db.Column(db.String(64), nullable=True)

    # request -> countdown -> completed; request -> rejected
    stage = db.Column(db.String(16), nullable=False, default="request")
    countdown_ends_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    payout_entry_id = db.Column(db.Integer, db.ForeignKey("ledger_entries.id"), nullable=True)

    version = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    def to_dict(self):
        data = self._lifecycle_dict()
        data.update({
            "account_id": int(self.account_id),
            "reason": self.reason or "",
            "account_balance": float(self.account_balance or 0.0),
            "fund_transfer_method": self.fund_transfer_method or "",
            "stage": self.stage,
            "countdown_ends_at": self.countdown_ends_at.isoformat() if self.countdown_ends_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "payout_entry_id": int(self.payout_entry_id) if self.payout_entry_id else None,
        })
        return data


class WithdrawalFlag(ApprovalLifecycleMixin, db.Model):
    __tablename__ = "withdrawal_flags"
    kind = "withdrawal_flag"

    id = db.Column(db.Integer, primary_key=True)
    withdrawal_id = db.Column(db.Integer, db.ForeignKey("withdrawals.id"), nullable=False, index=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    flag_type = db.Column(db.String(32), nullable=False)  # urgent|suspicious|high_amount|documentation_required|compliance_review
    priority = db.Column(db.String(8), nullable=False, default="medium")  # low|medium|high|urgent
    comment = db.Column(db.String(400), nullable=False)
    requested_by_role = db.Column(db.String(16), nullable=False, default="admin")

    # Only an approved flag is shown on the withdrawal.
    is_active = db.Column(db.Boolean, nullable=False, default=False)

    version = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    def is_urgent(self) -> bool:
        return self.flag_type == "urgent" or self.priority == "urgent"

    def to_dict(self):
        data = self._lifecycle_dict()
        data.update({
            "withdrawal_id": int(self.withdrawal_id),
            "account_id": int(self.account_id),
            "flag_type": self.flag_type,
            "priority": self.priority,
            "comment": self.comment or "",
            "requested_by_role": self.requested_by_role,
            "is_active": bool(self.is_active),
        })
        return data
