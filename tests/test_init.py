"""Test the main package."""

import s3_conformance


def test_version() -> None:
    """Test that version is defined."""
    assert hasattr(s3_conformance, "__version__")
    assert isinstance(s3_conformance.__version__, str)


def test_public_api() -> None:
    for name in s3_conformance.__all__:
        assert hasattr(s3_conformance, name), name


def test_query_params_helper_is_module_level() -> None:
    assert "add_query_params" not in s3_conformance.__all__


def test_no_author_metadata() -> None:
    assert not hasattr(s3_conformance, "__author__")
    assert not hasattr(s3_conformance, "__email__")
