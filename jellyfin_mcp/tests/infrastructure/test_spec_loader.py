import os
import shutil
import tempfile

from jellyfin_mcp.infrastructure import spec_loader
from jellyfin_mcp.infrastructure.spec_loader import (
    get_spec_section, load_spec, spec_top_level_index,
)

SPEC_YAML = """\
name: jellyfin-mcp
version: 0.1.0
tools:
  - name: list_items
  - name: search_items
auth:
  sources: [existing_session, pre_issued_token, username_password]
"""


class TestSpecLoader:

    def setup_method(self):
        spec_loader.clear_cache()
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, 'spec.yaml')
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write(SPEC_YAML)

    def teardown_method(self):
        spec_loader.clear_cache()
        shutil.rmtree(self.temp_dir)

    def test_load_parses_yaml(self):
        spec = load_spec(self.path)

        assert spec.data['name'] == 'jellyfin-mcp'
        assert spec.yaml_text == SPEC_YAML
        assert len(spec.etag) == 16

    def test_unchanged_file_is_cached(self):
        assert load_spec(self.path) is load_spec(self.path)

    def test_modified_file_is_reloaded(self):
        first = load_spec(self.path)
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write("description: changed\n")
        os.utime(self.path, (first.mtime + 10, first.mtime + 10))

        second = load_spec(self.path)

        assert second is not first
        assert second.data['description'] == 'changed'
        assert second.etag != first.etag

    def test_section_lookup(self):
        spec = load_spec(self.path)

        assert get_spec_section('tools/1/name', spec) == 'search_items'
        assert get_spec_section('auth/sources', spec)[0] == 'existing_session'
        assert get_spec_section('tools/7', spec) is None
        assert get_spec_section('missing', spec) is None

    def test_top_level_index(self):
        spec = load_spec(self.path)
        index = spec_top_level_index(spec)

        assert index['keys'] == ['name', 'version', 'tools', 'auth']
        assert index['etag'] == spec.etag
