"""Companies, their members and membership invitations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from django.db import IntegrityError
from django.db import transaction
from rest_framework.exceptions import ValidationError

from halogin.accounts.models import GoogleAccount
from halogin.companies.exceptions import NoInvitation
from halogin.companies.models import Company
from halogin.companies.models import CompanyUser
from halogin.companies.models import CompanyUserInvitation
from halogin.companies.models import CompanyUserProfile
from halogin.integrations.embeddings.client import encode_or_fail
from halogin.notifications.models import Notification
from halogin.notifications.services import create_notification
from halogin.storage.images import store_public_image

if TYPE_CHECKING:  # import for type checking only
    from halogin.storage.images import ImageForm
    from halogin.users.models import User

logger = logging.getLogger(__name__)

COMPANY_FIELDS = ("full_name", "banner_desc")
PROFILE_FIELDS = ("given_name", "family_name", "pronouns")
LOGO_FOLDER = "logo"
PFP_FOLDER = "pfp"


# Membership --------------------------------------------------------------


def membership(company_id, user) -> CompanyUser | None:
    return CompanyUser.objects.filter(company_id=company_id, user=user).first()


def is_admin(company_id, user) -> bool:
    return CompanyUser.objects.filter(
        company_id=company_id, user=user, is_admin=True
    ).exists()


def member_ids(company_id) -> list[str]:
    return [
        str(uid)
        for uid in CompanyUser.objects.filter(company_id=company_id).values_list(
            "user_id", flat=True
        )
    ]


def members_map(company_id) -> dict[str, dict[str, Any]]:
    """``{user_id: profile + is_admin}`` for every member of the company.

    Members without a company-user profile are listed with blank fields.
    """
    members = CompanyUser.objects.filter(company_id=company_id).select_related(
        "user__company_user_profile"
    )
    result = {}
    for member in members:
        profile = getattr(member.user, "company_user_profile", None)
        result[str(member.user_id)] = {
            "given_name": profile.given_name if profile else "",
            "family_name": profile.family_name if profile else "",
            "pronouns": profile.pronouns if profile else "",
            "pfp_path": profile.pfp_path if profile else "",
            "is_admin": member.is_admin,
        }
    return result


def _invites_summary(company: Company) -> list[dict[str, Any]]:
    return [
        {
            "google_email": invite.invited_google_email,
            "is_admin": invite.will_be_given_admin,
            "from_user": str(invite.from_user_id),
        }
        for invite in company.invitations.all()
    ]


def list_for_user(user: User) -> list[dict[str, Any]]:
    companies = (
        Company.objects.filter(members__user=user)
        .prefetch_related("invitations")
        .order_by("created_at")
    )
    return [
        {
            "id": str(company.id),
            "full_name": company.full_name,
            "banner_desc": company.banner_desc,
            "logo_url": company.logo_url,
            "users": members_map(company.id),
            "invites": _invites_summary(company),
        }
        for company in companies
    ]


# Companies ---------------------------------------------------------------


def create_company(user: User, form: ImageForm) -> Company:
    """Create a company with ``user`` as its first admin."""
    banner_desc = form.fields["banner_desc"]
    embedding = encode_or_fail(Company.embedding_text_for(banner_desc))
    with transaction.atomic():
        company = Company.objects.create(
            full_name=form.fields["full_name"],
            banner_desc=banner_desc,
            embedding=embedding,
        )
        logo_url = store_public_image(
            LOGO_FOLDER, company.id, form.get("logo_hidden"), form.image
        )
        if logo_url:
            company.logo_url = logo_url
            company.save(update_fields=["logo_url"])
        CompanyUser.objects.create(company=company, user=user, is_admin=True)
    logger.info("User %s created company %s", user.pk, company.id)
    return company


def update_company(company: Company, form: ImageForm) -> Company:
    banner_desc = form.fields["banner_desc"]
    company.full_name = form.fields["full_name"]
    if banner_desc != company.banner_desc or company.embedding is None:
        company.embedding = encode_or_fail(Company.embedding_text_for(banner_desc))
    company.banner_desc = banner_desc
    logo_url = store_public_image(
        LOGO_FOLDER, company.id, form.get("logo_hidden"), form.image
    )
    if logo_url:
        company.logo_url = logo_url
    company.save()
    logger.info("Updated company %s", company.id)
    return company


# Invitations -------------------------------------------------------------


def _google_emails(user: User) -> list[str]:
    return [email.lower() for email in user.google_accounts.values_list("email", flat=True)]


def invite(
    company: Company,
    from_user: User,
    google_email: str,
    *,
    is_admin: bool,
) -> CompanyUserInvitation:
    google_email = google_email.strip().lower()
    if CompanyUser.objects.filter(
        company=company, user__google_accounts__email__iexact=google_email
    ).exists():
        msg = "This user is already a member of the company."
        raise ValidationError(msg)
    try:
        with transaction.atomic():
            invitation = CompanyUserInvitation.objects.create(
                company=company,
                invited_google_email=google_email,
                will_be_given_admin=is_admin,
                from_user=from_user,
            )
    except IntegrityError as exc:
        msg = "This email has already been invited."
        raise ValidationError(msg) from exc

    recipients = (
        GoogleAccount.objects.filter(email__iexact=google_email)
        .values_list("user_id", flat=True)
        .distinct()
    )
    for recipient_id in recipients:
        create_notification(
            recipient_id,
            title=f"Invitation to {company.full_name}",
            message=f"You have been invited to join {company.full_name}.",
            notification_type=Notification.Type.INVITATION,
            related_link="/company/invites",
        )
    logger.info("Invited %s to company %s", google_email, company.id)
    return invitation


def uninvite(company: Company, google_email: str) -> int:
    deleted, _ = CompanyUserInvitation.objects.filter(
        company=company, invited_google_email=google_email.strip().lower()
    ).delete()
    return deleted


def _profile_summary(user_id) -> dict[str, Any] | None:
    profile = CompanyUserProfile.objects.filter(user_id=user_id).first()
    if profile is None:
        return None
    return {
        "user_id": str(profile.user_id),
        "given_name": profile.given_name,
        "family_name": profile.family_name,
        "pronouns": profile.pronouns,
        "pfp_path": profile.pfp_path,
    }


def list_invites_for_user(user: User) -> list[dict[str, Any]]:
    invitations = (
        CompanyUserInvitation.objects.filter(invited_google_email__in=_google_emails(user))
        .select_related("company")
        .order_by("created_at")
    )
    return [
        {
            "from": _profile_summary(invitation.from_user_id),
            "company": {
                "id": str(invitation.company_id),
                "full_name": invitation.company.full_name,
                "logo_url": invitation.company.logo_url,
            },
            "is_admin": invitation.will_be_given_admin,
        }
        for invitation in invitations
    ]


def _invites_to(company_id, user: User):
    return CompanyUserInvitation.objects.filter(
        company_id=company_id,
        invited_google_email__in=_google_emails(user),
    )


@transaction.atomic
def accept_invites(company_id, user: User) -> CompanyUser:
    """Join the company, consuming every invite sent to the user's emails."""
    invites = list(_invites_to(company_id, user).select_for_update())
    if not invites:
        raise NoInvitation
    grant_admin = any(invite.will_be_given_admin for invite in invites)
    CompanyUserInvitation.objects.filter(pk__in=[i.pk for i in invites]).delete()
    member, created = CompanyUser.objects.get_or_create(
        company_id=company_id,
        user=user,
        defaults={"is_admin": grant_admin},
    )
    if not created and grant_admin and not member.is_admin:
        member.is_admin = True
        member.save(update_fields=["is_admin"])
    logger.info("User %s joined company %s", user.pk, company_id)
    return member


def reject_invites(company_id, user: User) -> int:
    deleted, _ = _invites_to(company_id, user).delete()
    if not deleted:
        raise NoInvitation
    return deleted


# Company user profiles ---------------------------------------------------


def upsert_company_user_profile(user: User, form: ImageForm) -> CompanyUserProfile:
    pfp_path = store_public_image(PFP_FOLDER, user.pk, form.get("pfp_hidden"), form.image)
    if not pfp_path:
        msg = "Missing pfp picture"
        raise ValidationError(msg)
    profile, _ = CompanyUserProfile.objects.update_or_create(
        user=user,
        defaults={
            **{name: form.fields[name] for name in PROFILE_FIELDS},
            "pfp_path": pfp_path,
        },
    )
    return profile
