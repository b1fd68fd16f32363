"""
Huffman code book: maps single characters to their BitSequence codes

The table is an open hash with chained buckets. The hash of a key is its
ordinal value, a key lives in bucket ord(key) % book_size, and new entries
are appended at the tail of their bucket. When there are at least twice as
many entries as buckets the table grows to next_prime(2 * book_size + 1)
and every entry is re-inserted.

Keys are not deduplicated: adding a key twice keeps both entries and lookups
return the first one in chain order.

Instances are not thread-safe; a grow passes through intermediate states.
"""

import sys
from typing import List, Optional, TextIO, Tuple

from bitsequence import BitSequence

DEFAULT_BOOK_SIZE = 5


def next_prime(num: int) -> int:
    """
    Smallest integer >= num with no divisor in [2, num // 2)
    Scans upward one integer at a time using trial division
    """
    while True:
        for i in range(2, num // 2):
            if num % i == 0:
                break
        else:
            return num
        num += 1


class CodeEntry: # key/code pair stored in a bucket
    def __init__(self, key: str, value: BitSequence):
        self.key = key      # single character
        self.value = value  # its code


class HuffmanCodeBook:
    def __init__(self, book_size: int = DEFAULT_BOOK_SIZE):
        if book_size <= 0:
            raise ValueError(f"book_size must be > 0, got {book_size}")
        self.book_size = book_size  # number of buckets
        self.item_count = 0         # number of key/code pairs across all buckets
        self.resize_count = 0       # number of grows performed so far
        self._buckets: List[List[CodeEntry]] = [[] for _ in range(book_size)]

    def _index(self, key: str) -> int:
        return ord(key) % self.book_size

    def add_sequence(self, key: str, value: BitSequence) -> None:
        if self.item_count // self.book_size > 1: # at least twice as many entries as buckets
            self._grow()
        self._buckets[self._index(key)].append(CodeEntry(key, value))
        self.item_count += 1

    def _grow(self) -> None:
        rebuilt = HuffmanCodeBook(next_prime(2 * self.book_size + 1))
        for bucket in self._buckets:
            for entry in bucket:
                rebuilt.add_sequence(entry.key, entry.value)
        assert rebuilt.item_count == self.item_count, "grow lost entries"

        self._buckets = rebuilt._buckets
        self.book_size = rebuilt.book_size
        self.item_count = rebuilt.item_count
        self.resize_count += 1 + rebuilt.resize_count

    def search(self, key: str) -> Tuple[Optional[BitSequence], int]:
        """
        Scan the key's chain for the first matching entry
        Returns (code, comparisons); code is None when the key is absent
        """
        comparisons = 0
        for entry in self._buckets[self._index(key)]:
            comparisons += 1
            if entry.key == key:
                return entry.value, comparisons
        return None, comparisons

    def contains(self, key: str) -> bool:
        for entry in self._buckets[self._index(key)]:
            if entry.key == key:
                return True
        return False

    def get_sequence(self, key: str) -> Optional[BitSequence]:
        value, _ = self.search(key)
        return value

    def contains_all(self, letters: str) -> bool:
        """
        Only the first adjacent pair whose left character is present decides
        the result for inputs longer than one character, so "axyz" is True
        as long as 'a' and 'x' are present.
        """
        if len(letters) == 0:
            return True
        if len(letters) == 1:
            return self.contains(letters[0])
        for i in range(1, len(letters)):
            if self.contains(letters[i - 1]):
                return self.contains(letters[i])
        return False

    def encode(self, text: str) -> BitSequence:
        encoded = BitSequence()
        for c in text:
            if self.contains(c): # unknown characters are skipped
                encoded.append(self.get_sequence(c))
        return encoded

    def get_huffman_chars(self) -> List[str]:
        chars = [entry.key for bucket in self._buckets for entry in bucket]
        assert len(chars) == self.item_count, (
            f"visited {len(chars)} entries but item_count is {self.item_count}"
        )
        return chars

    def chain_lengths(self) -> List[int]:
        return [len(bucket) for bucket in self._buckets]

    @property
    def load_factor(self) -> int:
        return self.item_count // self.book_size

    def show_structure(self, file: Optional[TextIO] = None) -> None:
        out = file if file is not None else sys.stdout
        print(f"ItemCount: {self.item_count}", file=out)
        print(f"BookSize: {self.book_size}", file=out)
        print(f"LoadFactor: {self.load_factor}", file=out)

        for i, bucket in enumerate(self._buckets):
            triples = ''.join(f"({ord(e.key)} :: '{e.key}' : {e.value}) " for e in bucket)
            print(f" : {i} [{triples}]", file=out)

    def __len__(self) -> int:
        return self.item_count

    def __contains__(self, key: str) -> bool:
        return self.contains(key)
