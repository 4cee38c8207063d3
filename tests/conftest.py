import pytest
import boto3
from moto import mock_aws

from app.database.dynamodb import EntityStore
from app.schemas.conference import ConferenceForm
from app.schemas.user import AuthenticatedUser
from app.services.conference_service import ConferenceService
from app.services.profile_service import ProfileService
from app.services.query_service import ConferenceQueryService
from app.services.registration_service import RegistrationService
from scripts.init_dynamodb import create_table_if_not_exists

TEST_TABLE_NAME = "ConferenceCentral_Test"


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real AWS account"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def dynamodb_resource(aws_credentials):
    """In-memory DynamoDB with the application table created"""
    with mock_aws():
        resource = boto3.resource("dynamodb", region_name="us-east-1")
        create_table_if_not_exists(TEST_TABLE_NAME, dynamodb=resource)
        yield resource


@pytest.fixture
def store(dynamodb_resource):
    return EntityStore(dynamodb_resource, TEST_TABLE_NAME)


@pytest.fixture
def profile_service(store):
    return ProfileService(store)


@pytest.fixture
def conference_service(store):
    return ConferenceService(store)


@pytest.fixture
def query_service(store):
    return ConferenceQueryService(store)


@pytest.fixture
def registration_service(store):
    return RegistrationService(store)


@pytest.fixture
def alice():
    return AuthenticatedUser(userId="alice-id", email="alice@example.com")


@pytest.fixture
def bob():
    return AuthenticatedUser(userId="bob-id", email="bob@example.com")


@pytest.fixture
def carol():
    return AuthenticatedUser(userId="carol-id", email="carol@example.com")


@pytest.fixture
def small_conference(conference_service, alice):
    """Conference organized by alice with two seats"""
    return conference_service.create_conference(
        alice,
        ConferenceForm(
            name="PyCon Mini",
            description="A small Python gathering",
            topics=["Python", "Web Technologies"],
            city="London",
            startDate="2027-01-10",
            endDate="2027-01-11",
            maxAttendees=2,
        ),
    )
