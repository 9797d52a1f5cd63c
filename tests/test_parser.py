from testgen_agent.llm.parser import (
    estimate_coverage,
    extract_comments,
    extract_imports,
    parse_test_response,
)

COMPLETION = """import { add } from './math';
import assert from 'assert';

/* Covers the happy path
   and negative numbers. */
describe('add', () => {
  it('adds two numbers', () => {
    expect(add(1, 2)).toBe(3);
  });
});
"""


def test_imports_removed_and_kept_in_order():
    result = parse_test_response(COMPLETION)
    assert result.suggested_imports == (
        "import { add } from './math';",
        "import assert from 'assert';",
    )
    assert "import { add }" not in result.test_code
    assert "import assert" not in result.test_code
    assert result.test_code.startswith("/* Covers")
    assert result.test_code.endswith("});")


def test_block_comment_becomes_explanation():
    result = parse_test_response(COMPLETION)
    assert result.explanation == "Covers the happy path\n   and negative numbers."


def test_line_comments_joined_with_newlines():
    text = "// first\nconst x = 1; // second\n"
    assert extract_comments(text) == "first\nsecond"


def test_no_comments_yields_empty_explanation():
    assert parse_test_response("it('x', () => {});").explanation == ""


def test_duplicate_and_python_imports_are_collected():
    text = "import os\nfrom pathlib import Path\nimport os\n\ndef test_x():\n    pass\n"
    assert extract_imports(text) == ("import os", "from pathlib import Path", "import os")


def test_coverage_counts_markers_times_five():
    assert estimate_coverage(COMPLETION) == 15  # describe + it + expect
    assert estimate_coverage("assert.equal(1, 1); x.should.equal(1);") == 10
    assert estimate_coverage("no tests here") == 0


def test_coverage_is_clamped_to_100():
    assert estimate_coverage("expect(1);" * 40) == 100


def test_parse_sets_coverage_estimate():
    result = parse_test_response(COMPLETION)
    assert result.coverage is not None
    assert result.coverage.estimated_coverage == 15
    assert result.coverage.uncovered_paths == ()
