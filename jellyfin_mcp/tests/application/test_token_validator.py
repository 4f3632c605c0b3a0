from unittest.mock import Mock

from jellyfin_mcp.application.token_validator import TokenValidator
from jellyfin_mcp.domain.errors import ConnectivityFailure, UpstreamError


class TestTokenValidator:

    def setup_method(self):
        self.auth_api = Mock()
        self.validator = TokenValidator(self.auth_api)

    def test_accepted_token(self):
        self.auth_api.probe_items.return_value = {'Items': []}

        assert self.validator.validate('tok', 'u1') is True
        self.auth_api.probe_items.assert_called_once_with('tok', 'u1')

    def test_rejected_token(self):
        self.auth_api.probe_items.side_effect = UpstreamError(401, '/Users/u1/Items')
        assert self.validator.validate('tok', 'u1') is False

    def test_unreachable_server_counts_as_rejected(self):
        self.auth_api.probe_items.side_effect = ConnectivityFailure('down')
        assert self.validator.validate('tok', 'u1') is False

    def test_missing_inputs_skip_probe(self):
        assert self.validator.validate('', 'u1') is False
        assert self.validator.validate('tok', None) is False
        self.auth_api.probe_items.assert_not_called()
