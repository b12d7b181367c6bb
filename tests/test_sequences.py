from backoffice import sequences


def test_numbers_are_zero_padded_per_key(db_session):
    assert sequences.next_number(db_session, "saleID", "SALE") == "SALE-0001"
    assert sequences.next_number(db_session, "saleID", "SALE") == "SALE-0002"
    assert sequences.next_number(db_session, "jobOrderID", "JO") == "JO-0001"
    db_session.commit()

    assert sequences.next_number(db_session, "saleID", "SALE") == "SALE-0003"


def test_format_number_grows_past_padding():
    assert sequences.format_number("JO", 7) == "JO-0007"
    assert sequences.format_number("JO", 12345) == "JO-12345"
