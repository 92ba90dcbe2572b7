"""Basic tests to verify project setup."""


def test_import_devcluster():
    """Test that devcluster package can be imported."""
    import devcluster

    assert devcluster.__version__ == "0.1.0"


def test_import_cli():
    """Test that CLI module can be imported."""
    from devcluster import cli

    assert cli.app is not None


def test_import_providers():
    from devcluster.providers import ClusterProvider, KindProvider, MinikubeProvider

    assert issubclass(KindProvider, ClusterProvider)
    assert issubclass(MinikubeProvider, ClusterProvider)


def test_import_models():
    """Test that models module can be imported."""
    from devcluster import models

    assert models.ClusterSpec is not None
    assert models.AddonId is not None
