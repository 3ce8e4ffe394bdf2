"""
tests/test_parallel_client.py - core/parallel/client.py 테스트
"""

from unittest.mock import MagicMock

from botocore.config import Config

from core.parallel.client import DEFAULT_RETRY_MODE, client_config, get_client


class TestClientConfig:
    """client_config 테스트"""

    def test_defaults_follow_settings(self):
        config = client_config()

        assert config.retries == {"max_attempts": 3, "mode": DEFAULT_RETRY_MODE}
        assert config.read_timeout == 30
        assert config.max_pool_connections == 25

    def test_custom(self):
        config = client_config(max_attempts=5, retry_mode="standard")

        assert config.retries == {"max_attempts": 5, "mode": "standard"}


class TestGetClient:
    """get_client 테스트"""

    def test_applies_config(self):
        session = MagicMock()

        get_client(session, "s3", region_name="us-east-1")

        args, kwargs = session.client.call_args
        assert args[0] == "s3"
        assert kwargs["region_name"] == "us-east-1"
        assert kwargs["config"].retries == {"max_attempts": 3, "mode": DEFAULT_RETRY_MODE}

    def test_merges_existing_config(self):
        session = MagicMock()

        get_client(session, "ec2", config=Config(connect_timeout=3))

        config = session.client.call_args.kwargs["config"]
        assert config.connect_timeout == 3
        assert config.max_pool_connections == 25
