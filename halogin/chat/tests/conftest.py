import pytest

from halogin.chat.models import ChatRoom
from halogin.companies.models import Company
from halogin.companies.models import CompanyUser


@pytest.fixture
def company(db):
    return Company.objects.create(full_name="Analytical Engines", banner_desc="Engines.")


@pytest.fixture
def sponsor(make_user, company):
    member = make_user(email="sponsor@example.com", first_name="Charles")
    CompanyUser.objects.create(company=company, user=member, is_admin=True)
    return member


@pytest.fixture
def creator(make_user):
    return make_user(email="creator@example.com", first_name="Grace")


@pytest.fixture
def room(company, creator, sponsor):
    return ChatRoom.objects.create(company=company, user=creator)
