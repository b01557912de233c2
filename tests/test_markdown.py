from smart_apply.core.model.job_listing import JobListing
from smart_apply.core.tools.markdown import (
    escape_markdown,
    format_job_line,
    format_jobs_message,
    format_no_jobs_message,
    is_well_formed_url,
)


def test_escape_markdown_reserved_characters():
    assert escape_markdown("C++ & [Backend] Engineer") == r"C\+\+ & \[Backend\] Engineer"
    assert escape_markdown("Sr. Dev (Remote) - 100% fun!") == r"Sr\. Dev \(Remote\) \- 100% fun\!"
    assert escape_markdown("a_b*c~d`e>f#g=h|i{j}k\\l") == (
        r"a\_b\*c\~d\`e\>f\#g\=h\|i\{j\}k\\l"
    )
    assert escape_markdown("") == ""


def test_url_validation():
    assert is_well_formed_url("https://jobs.example.com/apply?id=1")
    assert not is_well_formed_url("not a url")
    assert not is_well_formed_url("ftp://example.com/file")
    assert not is_well_formed_url(None)


def test_job_line_with_link():
    job = JobListing(
        job_title="C++ Engineer",
        employer_name="Acme (EU)",
        job_apply_link="https://acme.example.com/jobs/1",
    )
    line = format_job_line(job)

    assert line.startswith(r"• C\+\+ Engineer at Acme \(EU\)")
    assert r"[Apply Here](https://acme\.example\.com/jobs/1)" in line


def test_job_line_defaults_and_bad_links():
    line = format_job_line(JobListing(job_apply_link="javascript:alert(1)"))

    assert "Untitled Position at Unknown Company" in line
    assert "[Apply Here]" not in line
    assert "No application link available" in format_job_line(JobListing())


def test_jobs_message_header():
    message = format_jobs_message(
        "Data Engineer", "São Paulo", [JobListing(job_title="Data Engineer")]
    )
    assert message.startswith("💼 Jobs for Data Engineer in São Paulo:\n\n• ")


def test_no_jobs_message_is_escaped():
    assert format_no_jobs_message("Dev.Ops", "Worldwide") == (
        r'No jobs found for "Dev\.Ops" in Worldwide\. Try different search criteria\.'
    )
