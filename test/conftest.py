import pytest

import config

ENV_VARS = [
    config.BUCKET_VAR,
    config.PROFILE_VAR,
    config.SHELL_PROFILE_VAR,
    "AWS_PROFILE",
    "AWS_DEFAULT_PROFILE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Every test starts with no s3-share settings and no stray .env file."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config, "load_dotenv", lambda *a, **kw: False)
    # Never let a test append to the real ~/.bashrc
    monkeypatch.setenv(config.SHELL_PROFILE_VAR, str(tmp_path / "bashrc"))


class DummyS3:
    """Looks like infrastructure.s3_client.S3Client, keeps everything in memory."""

    def __init__(self, bucket_name=None, buckets=None, fail_with=None):
        self.bucket_name = bucket_name
        self.buckets = buckets or []
        self.fail_with = fail_with
        self.puts = []
        self.list_calls = 0

    def list_buckets(self):
        self.list_calls += 1
        return list(self.buckets)

    def put_object(self, key, body, content_type, cache_control):
        if self.fail_with:
            raise self.fail_with
        self.puts.append({
            "key": key,
            "body": body,
            "content_type": content_type,
            "cache_control": cache_control,
        })

    def get_public_url(self, key):
        return f"https://{self.bucket_name}.s3.amazonaws.com/{key}"


class DummyPrompter:
    def __init__(self, choice="", confirm=True):
        self.choice = choice
        self.confirm_answer = confirm
        self.questions = []

    def ask_choice(self, message):
        self.questions.append(message)
        return self.choice

    def confirm(self, message):
        self.questions.append(message)
        return self.confirm_answer


@pytest.fixture
def fake_s3():
    return DummyS3()


@pytest.fixture
def storage_factory(fake_s3):
    """Hands out the same DummyS3, pointed at whatever bucket the settings say."""
    def factory(settings):
        fake_s3.bucket_name = settings.bucket
        return fake_s3
    return factory
