import io
import string

import pytest

from bitsequence import BitSequence
from codebook import DEFAULT_BOOK_SIZE, HuffmanCodeBook, next_prime


def _is_prime(n):
    return n > 1 and all(n % d for d in range(2, int(n ** 0.5) + 1))


def _book(pairs, book_size=DEFAULT_BOOK_SIZE):
    book = HuffmanCodeBook(book_size)
    for key, bits in pairs:
        book.add_sequence(key, BitSequence(bits))
    return book


def test_fresh_book_is_empty():
    book = HuffmanCodeBook()
    assert book.book_size == 5
    assert book.item_count == 0
    assert len(book) == 0
    assert book.get_huffman_chars() == []
    for c in "aZ 0\n~":
        assert not book.contains(c)
        assert book.get_sequence(c) is None


def test_invalid_book_size_rejected():
    with pytest.raises(ValueError):
        HuffmanCodeBook(0)
    with pytest.raises(ValueError):
        HuffmanCodeBook(-3)


def test_add_then_lookup():
    book = _book([('a', "0"), ('b', "10"), ('c', "11")])
    assert book.contains('b')
    assert 'c' in book
    assert book.get_sequence('a') == BitSequence("0")
    assert book.get_sequence('b') == BitSequence("10")
    assert book.get_sequence('c') == BitSequence("11")
    assert not book.contains('d')
    assert book.get_sequence('d') is None


def test_colliding_keys_share_a_chain_in_insertion_order():
    # ord('a') = 97 and ord('f') = 102 are both 2 mod 5
    book = _book([('a', "0"), ('f', "1")])
    assert book.chain_lengths() == [0, 0, 2, 0, 0]
    assert book.get_huffman_chars() == ['a', 'f']
    assert book.search('a') == (BitSequence("0"), 1)
    assert book.search('f') == (BitSequence("1"), 2)
    # 'k' (107) hashes to the same slot but is absent
    assert book.search('k') == (None, 2)


def test_duplicate_key_keeps_both_and_returns_first():
    book = _book([('x', "01"), ('x', "11")])
    assert book.item_count == 2
    assert book.get_huffman_chars() == ['x', 'x']
    assert book.get_sequence('x') == BitSequence("01")


def test_no_grow_until_more_than_twice_the_buckets():
    book = _book((c, "1") for c in string.ascii_lowercase[:10])
    assert book.book_size == 5
    assert book.resize_count == 0
    assert book.load_factor == 2


def test_grow_on_eleventh_insert_keeps_every_pair():
    letters = string.ascii_lowercase[:11]
    book = _book((c, format(i, "04b")) for i, c in enumerate(letters))
    assert book.book_size == 11
    assert book.resize_count == 1
    assert book.item_count == 11
    for i, c in enumerate(letters):
        assert book.get_sequence(c) == BitSequence(format(i, "04b"))


def test_repeated_growth_uses_prime_sizes():
    symbols = [chr(0x20 + i) for i in range(200)]
    book = _book((c, "1") for c in symbols)
    assert book.resize_count >= 3
    assert _is_prime(book.book_size)
    assert sum(book.chain_lengths()) == 200
    assert sorted(book.get_huffman_chars()) == sorted(symbols)
    assert all(book.contains(c) for c in symbols)


def test_huffman_chars_in_slot_then_chain_order():
    # slots mod 5: 'a'=2, 'b'=3, 'c'=4, 'd'=0, 'f'=2
    book = _book([('a', "0"), ('b', "1"), ('c', "0"), ('d', "1"), ('f', "0")])
    assert book.get_huffman_chars() == ['d', 'a', 'f', 'b', 'c']


def test_huffman_chars_length_matches_insertions():
    book = _book((chr(0x30 + i), "0") for i in range(37))
    assert len(book.get_huffman_chars()) == 37


def test_encode_skips_unknown_characters():
    book = _book([('a', "0"), ('b', "1")])
    assert book.encode("abc") == BitSequence("01")
    assert str(book.encode("cabbage")) == "0110"


def test_encode_empty_text():
    book = _book([('a', "0")])
    assert book.encode("") == BitSequence()
    assert len(HuffmanCodeBook().encode("anything")) == 0


def test_contains_all_empty_and_single():
    book = _book([('a', "0"), ('b', "1")])
    assert book.contains_all("")
    assert HuffmanCodeBook().contains_all("")
    assert book.contains_all("a")
    assert not book.contains_all("z")


def test_contains_all_stops_at_first_known_pair():
    book = _book([('a', "0"), ('b', "1")])
    assert book.contains_all("ab")
    assert not book.contains_all("az")
    # decided by ('a', 'b'); the unknown 'z' is never checked
    assert book.contains_all("abz")
    # leading unknowns are skipped until a known left character appears
    assert book.contains_all("zab")
    assert not book.contains_all("zaz")
    # the last character is never a left character
    assert not book.contains_all("zza")


def test_next_prime():
    assert next_prime(11) == 11
    assert next_prime(12) == 13
    assert next_prime(23) == 23
    assert next_prime(24) == 29
    assert next_prime(2 * 11 + 1) == 23
    assert next_prime(2 * 23 + 1) == 47
    assert next_prime(2 * 47 + 1) == 97


def test_next_prime_has_empty_divisor_range_below_five():
    assert next_prime(4) == 4
    assert next_prime(1) == 1


def test_grow_from_tiny_book():
    book = _book([(c, "0") for c in "abc"], book_size=1)
    assert book.book_size == 3
    assert book.get_huffman_chars() == ['c', 'a', 'b']

    for c in "defg":
        book.add_sequence(c, BitSequence("1"))
    assert book.book_size == 7
    assert book.resize_count == 2
    assert book.get_huffman_chars() == ['b', 'c', 'd', 'e', 'f', 'g', 'a']


def test_show_structure_format():
    book = _book([('a', "0"), ('f', "10")])
    out = io.StringIO()
    book.show_structure(out)
    assert out.getvalue().splitlines() == [
        "ItemCount: 2",
        "BookSize: 5",
        "LoadFactor: 0",
        " : 0 []",
        " : 1 []",
        " : 2 [(97 :: 'a' : 0) (102 :: 'f' : 10) ]",
        " : 3 []",
        " : 4 []",
    ]


def test_show_structure_defaults_to_stdout(capsys):
    HuffmanCodeBook(2).show_structure()
    assert capsys.readouterr().out == "ItemCount: 0\nBookSize: 2\nLoadFactor: 0\n : 0 []\n : 1 []\n"
