# arithmetic.py

# Copyright (C) 2025 The CaieAsm authors. License: GNU GPL Version 3
# See CaieAsm/README and LICENSE

# This file is part of CaieAsm. CaieAsm is free software: you can
# redistribute it and/or modify it under the terms of the GNU General
# Public License as published by the Free Software Foundation, either
# version 3 of the License, or (at your option) any later version.
# CaieAsm is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details. You should have received
# a copy of the GNU General Public License along with CaieAsm. If
# not, see <https://www.gnu.org/licenses/>.

# ------------------------------------------------------------------------
# arithmetic.py defines 16-bit word arithmetic for the architecture
# using Python integers: word representation, literal parsing, data
# conversions, and the operations with their condition flags as
# required by the instruction set.
# ------------------------------------------------------------------------

import common

word16mask = 0x0000FFFF
sign_bit = 0x8000

# ------------------------------------------------------------------------
# Ensuring validity of words
# ------------------------------------------------------------------------

# All operations that produce a word should produce a valid word,
# which is represented as a nonnegative integer x with 0 <= x < 2^16.

def limit16(x):
    return x & word16mask

def is_word(x):
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= word16mask

def is_negative(x):
    return x & sign_bit != 0

# ------------------------------------------------------------------------
# Parsing literals
# ------------------------------------------------------------------------

# Digits only, after one optional leading plus sign. Python's int()
# would also accept a minus sign, underscores and surrounding blanks,
# none of which is a valid literal.

digits_for_radix = {
    2: "01",
    10: "0123456789",
    16: "0123456789abcdefABCDEF",
}

def parse_word(xs, radix):
    """Parse an unsigned literal that must fit in 16 bits. Return None
    if xs has no digits, has a character that is not a digit of the
    radix, or is too large."""
    digits = digits_for_radix[radix]
    if xs.startswith("+"):
        xs = xs[1:]
    if not xs or any(c not in digits for c in xs):
        return None
    x = int(xs, radix)
    if x > word16mask:
        common.mode.devlog(f"parse_word {xs} radix {radix} does not fit in 16 bits")
        return None
    return x

# ------------------------------------------------------------------------
# Converting to text
# ------------------------------------------------------------------------

def word_to_hex4(x):
    return f"{limit16(x):04X}"

def word_to_hex2(x):
    return f"{x & 0xFF:02X}"

def show_word(x, as_hex=True):
    return word_to_hex4(x) if as_hex else str(x)

def show_address(a):
    return f"{a:X}₁₆ = {a}₁₀"

# A Unicode scalar value is any code point except the surrogates

def is_scalar_value(x):
    return 0 <= x <= 0x10FFFF and not (0xD800 <= x <= 0xDFFF)

def word_to_char(x):
    return chr(x) if is_scalar_value(x) else common.replacement_char

def char_to_word(c):
    return limit16(ord(c))

# ------------------------------------------------------------------------
# Operations for the instructions
# ------------------------------------------------------------------------

# Each operation returns [primary, secondary]: the result word and a
# dict holding only the flags that the operation sets. Flags missing
# from the dict keep their previous value.

def arith_flags(primary, wrapped):
    return {
        "carry": wrapped,
        "zero": primary == 0,
        "overflow": wrapped,
        "sign": is_negative(primary),
    }

def op_add(a, b):
    sum_val = a + b
    primary = limit16(sum_val)
    return [primary, arith_flags(primary, sum_val > word16mask)]

def op_sub(a, b):
    diff = a - b
    primary = limit16(diff)
    return [primary, arith_flags(primary, diff < 0)]

# INC and DEC leave the carry flag alone

def op_inc(a):
    primary, secondary = op_add(a, 1)
    del secondary["carry"]
    return [primary, secondary]

def op_dec(a):
    primary, secondary = op_sub(a, 1)
    del secondary["carry"]
    return [primary, secondary]

def logic_flags(primary):
    return {"zero": primary == 0, "sign": is_negative(primary)}

def op_and(a, b):
    primary = a & b
    return [primary, logic_flags(primary)]

def op_or(a, b):
    primary = a | b
    return [primary, logic_flags(primary)]

def op_xor(a, b):
    primary = a ^ b
    return [primary, logic_flags(primary)]

# Shift amounts wrap modulo the word size, as a native 16-bit shift
# does, so LSL #16 leaves ACC unchanged.

def shift_amount(k):
    return k % 16

def op_lsl(a, k):
    primary = limit16(a << shift_amount(k))
    return [primary, logic_flags(primary)]

def op_lsr(a, k):
    primary = a >> shift_amount(k)
    return [primary, logic_flags(primary)]
