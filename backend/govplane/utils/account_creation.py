from __future__ import annotations

from govplane.actors import Actor
from govplane.errors import ConflictError, ValidationError
from govplane.extensions import db
from govplane.models import Account, AccountCreationRequest
from govplane.utils.approvals import ApprovalHandler, register, submit_request
from govplane.utils.inputs import clean_text, clean_text_list
from govplane.utils.ledger import post_entry
from govplane.utils.restrictions import refresh_account

ACCOUNT_TYPES = ("Standard", "Pro")


def _required(payload: dict, key: str) -> str:
    return clean_text(payload.get(key), key, required=True)


def _email_taken(email: str) -> bool:
    return Account.query.filter(db.func.lower(Account.email) == email.lower()).first() is not None


@register
class AccountCreationHandler(ApprovalHandler):
    kind = "account_creation"
    model = AccountCreationRequest

    submit_action = "account_creation_request"
    approve_action = "account_creation_approval"
    reject_action = "account_creation_rejection"

    def validate(self, payload: dict) -> dict:
        email = _required(payload, "applicant_email").lower()
        if "@" not in email:
            raise ValidationError("applicant_email is not a valid email", applicant_email=email)
        try:
            deposit = float(payload.get("initial_deposit") or 0.0)
        except (TypeError, ValueError):
            raise ValidationError("initial_deposit must be a number")
        if deposit < 0:
            raise ValidationError("initial_deposit cannot be negative")
        account_type = clean_text(payload.get("account_type"), "account_type", default="Standard").capitalize()
        if account_type not in ACCOUNT_TYPES:
            raise ValidationError("Unknown account type", account_type=account_type)
        bank_details = payload.get("bank_details") or {}
        if not isinstance(bank_details, dict):
            raise ValidationError("bank_details must be an object")
        documents = payload.get("documents") or []
        if not isinstance(documents, list):
            raise ValidationError("documents must be a list")
        return {
            "applicant_name": _required(payload, "applicant_name"),
            "applicant_email": email,
            "applicant_phone": clean_text(payload.get("applicant_phone"), "applicant_phone") or None,
            "applicant_country": _required(payload, "applicant_country"),
            "applicant_city": clean_text(payload.get("applicant_city"), "applicant_city") or None,
            "initial_deposit": deposit,
            "account_type": account_type,
            "bank_details": bank_details,
            "documents": documents,
            "approval_conditions": clean_text_list(payload.get("approval_conditions"), "approval_conditions"),
        }

    def on_submit(self, req, actor: Actor) -> None:
        if _email_taken(req.applicant_email):
            raise ConflictError("An account with this email already exists", applicant_email=req.applicant_email)

    def on_approve(self, req, actor: Actor, comment: str | None) -> None:
        if _email_taken(req.applicant_email):
            raise ConflictError("An account with this email already exists", applicant_email=req.applicant_email)
        account = Account(
            name=req.applicant_name,
            email=req.applicant_email,
            phone=req.applicant_phone,
            country=req.applicant_country,
            city=req.applicant_city,
            account_type=req.account_type,
            balance=0.0,
            bank_accounts=[dict(req.bank_details)] if req.bank_details else [],
            crypto_wallets=[],
            approval_conditions=list(req.approval_conditions or []),
            restrictions={},
        )
        db.session.add(account)
        db.session.flush()
        if float(req.initial_deposit or 0.0) > 0:
            post_entry(
                account=account,
                direction="credit",
                amount=req.initial_deposit,
                entry_type="Deposit",
                reference=f"account-creation:{req.id}",
                description="Initial deposit",
                processed_by=actor.id,
                idempotency_key=f"account-creation-deposit:{req.id}",
            )
        refresh_account(account)
        req.created_account_id = account.id

    def target(self, req) -> tuple:
        return "account_creation_request", req.id, req.applicant_name

    def audit_details(self, req) -> dict:
        details = super().audit_details(req)
        details.update({
            "applicant_email": req.applicant_email,
            "initial_deposit": float(req.initial_deposit or 0.0),
            "account_type": req.account_type,
        })
        if req.created_account_id:
            details["created_account_id"] = req.created_account_id
        return details


def request_account_creation(payload: dict, actor: Actor) -> AccountCreationRequest:
    return submit_request("account_creation", payload, actor)
