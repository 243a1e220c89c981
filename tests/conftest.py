"""
Shared pytest options
"""


def pytest_addoption(parser):
    parser.addoption(
        "--image",
        action="store",
        default=None,
        help="MongoDB image under test; integration tests are skipped without it"
    )
    parser.addoption(
        "--expect-version",
        action="store",
        default=None,
        help="Version string the image must report"
    )
