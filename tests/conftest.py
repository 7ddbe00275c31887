import os
import pytest
from moto import mock_aws
from fastapi.testclient import TestClient
import boto3

# Set test environment variables BEFORE importing app modules
os.environ["TESTING"] = "true"

# Dummy AWS credentials for moto
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["PHOTOS_BUCKET"] = "photos"
os.environ["THUMBNAILS_BUCKET"] = "thumbnails"
# Clear endpoints so moto mocks are used instead of localstack / a real vision service
os.environ.pop("AWS_ENDPOINT_URL", None)
os.environ.pop("PUBLIC_ENDPOINT", None)
os.environ.pop("VISION_ENDPOINT", None)
os.environ.pop("VISION_USE_PRESIGNED_URL", None)

from gallery.main import app
from gallery.storage.s3 import S3Service
from gallery.image_service.models import AnalysisResult
from gallery.exceptions import AnalysisUnavailableException


class FakeVisionClient:
    """Stands in for the analysis service; records the references it was given."""

    def __init__(self, result=None, error=None):
        self.result = result or AnalysisResult(caption="a dog in a field", tags=["dog", "field", "outdoor"])
        self.error = error
        self.calls = []

    def analyze(self, image_uri):
        self.calls.append(image_uri)
        if self.error:
            raise self.error
        return self.result

    def close(self):
        pass


@pytest.fixture(scope="function")
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"


@pytest.fixture(scope="function")
def s3_service(aws_credentials):
    with mock_aws():
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket="photos")
        s3.create_bucket(Bucket="thumbnails")
        yield S3Service()


@pytest.fixture(scope="function")
def make_vision():
    return FakeVisionClient


@pytest.fixture(scope="function")
def vision():
    return FakeVisionClient()


@pytest.fixture(scope="function")
def unavailable_vision():
    return FakeVisionClient(error=AnalysisUnavailableException("connection refused"))


@pytest.fixture(scope="function")
def test_client(s3_service, vision):
    # Services placed on app.state are kept by the lifespan handler
    app.state.s3 = s3_service
    app.state.vision = vision

    with TestClient(app) as client:
        yield client

    app.state.s3 = None
    app.state.vision = None
