"""Tests for image reference parsing"""

import pytest

from harpoon.core.image import (
    ImageReference,
    archive_filename,
    canonicalize,
    parse_image,
    project_from_image,
)
from harpoon.errors import ParseError


class TestParseImage:
    """Test parse_image component extraction"""

    def test_bare_name(self):
        ref = parse_image("nginx")
        assert (ref.registry, ref.project, ref.name, ref.tag) == ("docker.io", "library", "nginx", "latest")

    def test_bare_name_with_tag(self):
        ref = parse_image("nginx:1.25")
        assert ref.name == "nginx"
        assert ref.tag == "1.25"

    def test_project_and_name(self):
        ref = parse_image("calico/node:v3.28.2")
        assert (ref.registry, ref.project, ref.name, ref.tag) == ("docker.io", "calico", "node", "v3.28.2")

    def test_registry_and_name(self):
        ref = parse_image("ghcr.io/app:1.0")
        assert (ref.registry, ref.project, ref.name, ref.tag) == ("ghcr.io", "", "app", "1.0")

    def test_registry_with_port_and_name(self):
        ref = parse_image("localhost:5000/app:2")
        assert (ref.registry, ref.project, ref.name, ref.tag) == ("localhost:5000", "", "app", "2")

    def test_registry_with_port_without_tag(self):
        ref = parse_image("localhost:5000/team/app")
        assert (ref.registry, ref.project, ref.name, ref.tag) == ("localhost:5000", "team", "app", "latest")

    def test_three_segments(self):
        ref = parse_image("registry.k8s.io/coredns/coredns:v1.11.1")
        assert (ref.registry, ref.project, ref.name, ref.tag) == (
            "registry.k8s.io", "coredns", "coredns", "v1.11.1")

    def test_nested_project(self):
        ref = parse_image("harbor.example.com/team/sub/group/app:3")
        assert ref.registry == "harbor.example.com"
        assert ref.project == "team/sub/group"
        assert ref.name == "app"
        assert ref.tag == "3"

    def test_keeps_original_string(self):
        assert parse_image("calico/node").full_name == "calico/node"

    @pytest.mark.parametrize("image", ["", "   ", "\t", "\n", "/", ":", "nginx/", "harbor.local/team/"])
    def test_empty_string_fails(self, image):
        """Test blank input and references without a name are rejected"""
        with pytest.raises(ParseError):
            parse_image(image)

    def test_surrounding_whitespace_ignored(self):
        ref = parse_image("  calico/node:v3  ")
        assert (ref.project, ref.name, ref.tag) == ("calico", "node", "v3")

    def test_digest_reference_rejected(self):
        with pytest.raises(ParseError):
            parse_image("nginx@sha256:0123abcd")

    @pytest.mark.parametrize("image", ["nginx", "calico/node", "quay.io/a/b", "x/y/z/w", "my-app_1"])
    def test_no_colon_means_latest(self, image):
        assert parse_image(image).tag == "latest"

    @pytest.mark.parametrize("registry,project,name,tag", [
        ("registry.k8s.io", "coredns", "coredns", "v1.11.1"),
        ("harbor.local", "prod", "api", "2024.01"),
        ("quay.io", "prometheus", "node-exporter", "v1.8.0"),
    ])
    def test_recovers_registry_project_name_tag(self, registry, project, name, tag):
        ref = parse_image(f"{registry}/{project}/{name}:{tag}")
        assert (ref.registry, ref.project, ref.name, ref.tag) == (registry, project, name, tag)

    def test_reference_is_immutable(self):
        ref = parse_image("nginx")
        with pytest.raises(AttributeError):
            ref.tag = "other"

    def test_new_instance_per_call(self):
        assert parse_image("nginx") is not parse_image("nginx")


class TestCanonicalize:
    """Test rendering references back to strings"""

    def test_default_registry_and_project_omitted(self):
        assert canonicalize(parse_image("nginx")) == "nginx:latest"

    def test_project_rendered_with_registry(self):
        assert canonicalize(parse_image("calico/node:v3")) == "docker.io/calico/node:v3"

    def test_registry_without_project(self):
        assert canonicalize(parse_image("ghcr.io/app:1")) == "ghcr.io/app:1"

    def test_str_is_canonical(self):
        ref = parse_image("registry.k8s.io/pause:3.9")
        assert str(ref) == ref.canonical()

    @pytest.mark.parametrize("image", [
        "nginx",
        "nginx:1.25",
        "calico/node:v3.28.2",
        "ghcr.io/app:1.0",
        "docker.io/library/redis:7",
        "registry.k8s.io/coredns/coredns:v1.11.1",
        "harbor.example.com/team/sub/app:3",
        "localhost:5000/app",
    ])
    def test_idempotent(self, image):
        once = canonicalize(parse_image(image))
        twice = canonicalize(parse_image(once))
        assert once == twice


class TestArchiveFilename:
    """Test deterministic archive naming"""

    def test_three_segment_image(self):
        ref = parse_image("registry.k8s.io/coredns/coredns:v1.11.1")
        assert archive_filename(ref) == "registry_k8s_io_coredns_coredns_v1.11.1.tar"

    def test_bare_image(self):
        assert parse_image("nginx:latest").archive_filename() == "docker_io_library_nginx_latest.tar"

    def test_empty_project_uses_library(self):
        assert parse_image("ghcr.io/app:1").archive_filename() == "ghcr_io_library_app_1.tar"

    def test_registry_port_and_nested_project(self):
        ref = parse_image("localhost:5000/a/b/app:2")
        assert ref.archive_filename() == "localhost_5000_a_b_app_2.tar"

    def test_deterministic(self):
        assert parse_image("calico/node:v3").archive_filename() == parse_image("calico/node:v3").archive_filename()

    def test_distinct_references_do_not_collide(self):
        refs = [
            ImageReference("docker.io", "library", "nginx", "latest", ""),
            ImageReference("docker.io", "library", "nginx", "1.25", ""),
            ImageReference("docker.io", "calico", "nginx", "latest", ""),
            ImageReference("quay.io", "library", "nginx", "latest", ""),
            ImageReference("docker.io", "library", "redis", "latest", ""),
        ]
        names = {ref.archive_filename() for ref in refs}
        assert len(names) == len(refs)


class TestProjectFromImage:
    """Test project derivation used for save mode 3 and push mode 2"""

    def test_three_segments(self):
        assert project_from_image("registry.k8s.io/coredns/coredns:v1.11.1") == "coredns"

    def test_two_segments(self):
        assert project_from_image("calico/node:v3.28.2") == "calico"

    def test_bare_name(self):
        assert project_from_image("nginx:latest") == "library"

    def test_nested_uses_last_but_one(self):
        assert project_from_image("harbor.local/a/b/app:1") == "b"
