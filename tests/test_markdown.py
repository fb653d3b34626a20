"""Tests for the status comment markdown."""

from pkg.cdktf_action.markdown import output_block, render_status_comment, run_link


def test_title_only():
    assert render_status_comment("✅ Done") == "### ✅ Done\n\n\n\n"


def test_with_run_url_and_output():
    body = render_status_comment(
        "✅ Planned",
        "https://app.terraform.io/app/org/ws/runs/run-1",
        "Plan: 1 to add",
        "Show Plan",
    )
    assert body == (
        "### ✅ Planned\n"
        "\n"
        "<a target=\"_blank\" href='https://app.terraform.io/app/org/ws/runs/run-1'>🌍 View run</a>\n"
        "\n"
        "<details><summary>Show Plan</summary>\n"
        "\n"
        "```shell\n"
        "Plan: 1 to add\n"
        "```\n"
        "\n"
        "</details>"
    )


def test_exception_as_summary():
    body = render_status_comment("❌ Failed", None, "boom", RuntimeError("exit code 1"))
    assert "<details><summary>exit code 1</summary>" in body


def test_empty_pieces():
    assert run_link(None) == ""
    assert run_link("") == ""
    assert output_block("", summary="x") == ""
    assert output_block(None, summary="x") == ""
