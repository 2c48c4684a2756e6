"""Unit tests for FilenameNormalizer."""
import pytest

from source_proxy.errors import ConfigurationError
from source_proxy.proxy.filenames import FilenameNormalizer


@pytest.fixture
def normalizer():
    return FilenameNormalizer.from_expression()


def test_increments_zero_padded_run(normalizer):
    assert normalizer.normalize("report-007.csv") == "report-008.csv"


@pytest.mark.parametrize(
    "candidate, expected",
    [
        ("batch-9.log", "batch-10.log"),
        ("099.bin", "100.bin"),
        ("0", "1"),
        ("v1-part-22", "v2-part-22"),
        ("log-2024-01-31.txt", "log-2025-01-31.txt"),
    ],
)
def test_increments_first_run_only(normalizer, candidate, expected):
    assert normalizer.normalize(candidate) == expected


@pytest.mark.parametrize("candidate", ["readme.txt", "", "no-digits-here"])
def test_no_numeric_run_is_identity(normalizer, candidate):
    assert normalizer.normalize(candidate) == candidate


def test_twice_adds_two(normalizer):
    assert normalizer.normalize(normalizer.normalize("chunk-41.dat")) == "chunk-43.dat"


def test_run_longer_than_int_conversion_limit(normalizer):
    """Runs past Python's 4300-digit str/int limit still increment."""
    assert normalizer.normalize("f-" + "9" * 5000 + ".bin") == "f-1" + "0" * 5000 + ".bin"
    assert normalizer.normalize("r" + "1" * 4400) == "r" + "1" * 4399 + "2"


def test_non_ascii_digits_pass_through():
    """A custom pattern may match text that is not a plain integer."""
    normalizer = FilenameNormalizer.from_expression(r"\d+")
    assert normalizer.normalize("file-٣.txt") == "file-٣.txt"


def test_custom_pattern_non_integer_match_unchanged():
    normalizer = FilenameNormalizer.from_expression("v[0-9]+")
    assert normalizer.normalize("model-v3.bin") == "model-v3.bin"


def test_custom_pattern_targets_later_run():
    normalizer = FilenameNormalizer.from_expression("(?<=-)[0-9]+(?=\\.)")
    assert normalizer.normalize("2024-report-17.csv") == "2024-report-18.csv"


def test_empty_expression_uses_default():
    normalizer = FilenameNormalizer.from_expression("")
    assert normalizer.normalize("a1") == "a2"


def test_invalid_expression_raises_configuration_error():
    with pytest.raises(ConfigurationError, match="error compiling match expression of <\\[0-9>"):
        FilenameNormalizer.from_expression("[0-9")
