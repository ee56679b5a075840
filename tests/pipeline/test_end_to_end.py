"""Post-process then bundle a real APK-shaped archive, without a container."""

import zipfile

from droidpack.pipeline import service
from droidpack.pipeline.state import PipelineRun, PipelineState


def test_fix_then_bundle_preserves_payload(settings, fake_executor, make_apk):
    make_apk(
        settings.artifact_path,
        {
            "payload.txt": b"hello",
            "META-INF/MANIFEST.MF": b"Manifest-Version: 1.0\r\n",
            "META-INF/CERT.SF": b"sig",
        },
    )

    service.fix_artifact_at_default_path(settings)

    run = PipelineRun()
    bundle = service.build_bundle(settings, fake_executor(), skip_build=True, run=run)

    with zipfile.ZipFile(bundle.path) as zf:
        names = zf.namelist()
        assert zf.read("base/payload.txt") == b"hello"
        assert b"Name: payload.txt" in zf.read("base/META-INF/MANIFEST.MF")
    assert "base/META-INF/CERT.SF" not in names
    assert run.state == PipelineState.BUNDLED


def test_build_fix_bundle_with_fake_engine(settings, fake_executor, make_apk):
    def _container_build(command):
        make_apk(settings.artifact_path, {"classes.dex": b"dex", "META-INF/CERT.RSA": b"sig"})
        return 0

    executor = fake_executor({("podman", "run"): _container_build})

    service.setup(settings, executor)
    service.build_artifact(settings, executor)
    service.fix_artifact_at_default_path(settings)
    service.build_bundle(settings, executor, skip_build=True)

    with zipfile.ZipFile(settings.bundle_path) as zf:
        assert zf.read("base/classes.dex") == b"dex"
        assert "base/META-INF/CERT.RSA" not in zf.namelist()

    service.clean(settings)
    assert not settings.output_root.exists()
