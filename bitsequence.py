from typing import Iterable, List, Tuple, Union


class BitSequence: # ordered, appendable run of bits (a Huffman code or a concatenation of codes)
    def __init__(self, bits: Union[str, Iterable[int]] = ""):
        self._bits: List[int] = []
        for b in bits:
            if b in ('0', 0):
                self._bits.append(0)
            elif b in ('1', 1):
                self._bits.append(1)
            else:
                raise ValueError(f"BitSequence accepts only 0/1 bits, got {b!r}")

    def append(self, other: "BitSequence") -> None: # in-place concatenation
        self._bits.extend(other._bits)

    def append_bit(self, bit: int) -> None:
        if bit not in (0, 1):
            raise ValueError(f"bit must be 0 or 1, got {bit!r}")
        self._bits.append(bit)

    def pack(self) -> Tuple[bytes, int]:
        """
        Packs the bits MSB-first into bytes
        Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
        """
        out = bytearray()
        acc = 0
        acc_bits = 0

        for bit in self._bits:
            acc = (acc << 1) | bit
            acc_bits += 1
            if acc_bits == 8:
                out.append(acc)
                acc = 0
                acc_bits = 0

        pad_bits = 0
        if acc_bits != 0:
            pad_bits = 8 - acc_bits
            out.append((acc << pad_bits) & 0xFF)

        return bytes(out), pad_bits

    def __len__(self) -> int:
        return len(self._bits)

    def __iter__(self):
        return iter(self._bits)

    def __getitem__(self, index: int) -> int:
        return self._bits[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, BitSequence):
            return NotImplemented
        return self._bits == other._bits

    def __str__(self) -> str:
        return ''.join('1' if b else '0' for b in self._bits)

    def __repr__(self) -> str:
        return f"BitSequence('{self}')"
