from brain_db.modules.auth.allowlist import check_env_allowlist, email_domain, parse_env_list


def test_parse_env_list_accepts_mixed_separators():
    assert parse_env_list("a@x.de, b@y.de;c@z.de\nd@w.de") == ["a@x.de", "b@y.de", "c@z.de", "d@w.de"]
    assert parse_env_list("") == []
    assert parse_env_list(None) == []


def test_exact_email_match_is_case_insensitive():
    assert check_env_allowlist(" Anna@Example.com ", ["anna@example.com"], [])


def test_domain_and_subdomain_match():
    assert check_env_allowlist("bob@zepta.de", [], ["zepta.de"])
    assert check_env_allowlist("bob@mail.zepta.de", [], [".zepta.de"])
    assert not check_env_allowlist("bob@notzepta.de", [], ["zepta.de"])


def test_empty_lists_deny_everyone():
    assert not check_env_allowlist("bob@zepta.de", [], [])


def test_email_domain():
    assert email_domain("a@B.de") == "b.de"
    assert email_domain("no-at-sign") is None
    assert email_domain("trailing@") is None
