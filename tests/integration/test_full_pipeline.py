"""Integration test — full verification of a staged release.

find -> download -> per artifact GPG, SHA-1, MD-5 -> CI status, all against
a fake Nexus/GitHub remote and a PGPy-generated release manager key.
"""

from __future__ import annotations

import logging

import httpx
import pytest

from stagecheck.core.errors import NexusError, RepositoryNotFoundError, TransportError
from stagecheck.models.reports import CheckStatus


class TestFullPipeline:
    def test_everything_correct_is_valid(self, services, staged_release):
        report = services.pipeline.run(1234)

        assert report.valid
        assert report.checks_run == 7
        assert report.summary == "VALID (7 checks executed)"
        assert report.repository_id == staged_release.repository_id
        assert report.releases == ["Apache Sling Adapter Annotations 1.0.0"]

    def test_check_order_per_artifact(self, services, staged_release):
        report = services.pipeline.run(1234)

        assert [a.file_name for a in report.artifacts] == [
            "adapter-annotations-1.0.0.jar",
            "adapter-annotations-1.0.0.pom",
        ]
        for artifact in report.artifacts:
            assert [c.name for c in artifact.checks] == ["GPG", "SHA-1", "MD-5"]
        assert report.ci_check is not None
        assert report.ci_check.name == "CI Status"
        assert report.ci_check.status is CheckStatus.PASSED

    def test_gpg_detail_names_signer(self, services, staged_release, signing_key):
        report = services.pipeline.run(1234)
        gpg = report.artifacts[0].checks[0]
        key_id = signing_key.fingerprint.keyid.upper()
        assert gpg.detail.startswith("signed by Jane Release (CODE SIGNING KEY) <jane@apache.org>")
        assert f"(id=0x{key_id}; fingerprint=" in gpg.detail

    def test_one_corrupted_hash_file(self, services, staged_release, remote):
        remote.add_bytes(
            staged_release.url(staged_release.jar.sha1_path), b"da39a3ee5e6b4b0d3255bfef95601890afd80709"
        )

        report = services.pipeline.run(1234)

        assert not report.valid
        assert report.summary == "INVALID (1 of 7 checks failed)"
        sha1 = report.artifacts[0].checks[1]
        assert sha1.status is CheckStatus.FAILED
        assert sha1.detail.startswith("INVALID (expected da39a3ee5e6b4b0d3255bfef95601890afd80709, got ")

    def test_tampered_artifact_fails_every_artifact_check(self, services, staged_release, remote):
        jar = staged_release.jar
        remote.add_bytes(staged_release.url(jar.relative_path), b"tampered bytes")

        report = services.pipeline.run(1234)

        jar_report = report.artifacts[0]
        assert [c.status for c in jar_report.checks] == [CheckStatus.FAILED] * 3
        assert report.summary == "INVALID (3 of 7 checks failed)"

    def test_failing_ci(self, services, staged_release):
        staged_release.publish(ci_state="failure")

        report = services.pipeline.run(1234)

        assert report.ci_check.status is CheckStatus.FAILED
        assert "State: failure" in report.ci_check.detail
        assert report.summary == "INVALID (1 of 7 checks failed)"

    def test_unknown_signer_is_an_error_outcome(self, services, staged_release, remote, stranger_key, sign):
        pom = staged_release.pom
        data = staged_release.contents[pom.relative_path]
        remote.add_bytes(staged_release.url(pom.signature_path), sign(stranger_key, data))

        report = services.pipeline.run(1234)

        gpg = report.artifacts[1].checks[0]
        assert gpg.status is CheckStatus.ERROR
        assert "not in the trusted key ring" in gpg.detail
        # the remaining checks still ran
        assert [c.status for c in report.artifacts[1].checks[1:]] == [CheckStatus.PASSED] * 2
        assert report.summary == "INVALID (1 of 7 checks failed)"

    def test_descriptor_without_release_tag_skips_ci(self, services, staged_release):
        pom = staged_release.pom
        data = staged_release.contents[pom.relative_path].replace(
            b"adapter-annotations-1.0.0</tag>", b"HEAD</tag>"
        )
        staged_release.contents[pom.relative_path] = data
        staged_release.publish()

        report = services.pipeline.run(1234)

        assert report.ci_check is None
        assert report.summary == "VALID (6 checks executed)"

    def test_unknown_repository_aborts(self, services, staged_release):
        with pytest.raises(RepositoryNotFoundError):
            services.pipeline.run(4321)

    def test_download_failure_aborts(self, services, staged_release, remote):
        remote.add_status(staged_release.url(staged_release.pom.md5_path), 503)
        with pytest.raises(NexusError):
            services.pipeline.run(1234)

    def test_unreachable_nexus_aborts_with_log(self, services, staged_release, remote, caplog):
        remote.add_error(staged_release.profile_repositories_url, httpx.ConnectError)
        with caplog.at_level(logging.ERROR, logger="stagecheck"), pytest.raises(TransportError):
            services.pipeline.run(1234)
        assert "Verification of repository 1234 aborted." in [r.getMessage() for r in caplog.records]

    def test_logs_per_artifact_lines(self, services, staged_release, caplog):
        with caplog.at_level(logging.INFO, logger="stagecheck"):
            services.pipeline.run(1234)

        messages = [record.getMessage() for record in caplog.records]
        assert "adapter-annotations-1.0.0.pom" in messages
        assert any(m.startswith("GPG: signed by ") for m in messages)
        assert any(m.startswith("SHA-1: VALID (") for m in messages)
        assert any(m.startswith("MD-5: VALID (") for m in messages)
        assert "Release Summary: VALID (7 checks executed)" in messages
