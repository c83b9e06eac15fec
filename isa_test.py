import os
import tempfile

import pytest
from isa import Exceptions, InstructionSet, AddressCommand, ComputeCommand, LabelCommand, PredefinedSymbols, \
    HackCodeFile, Term


def test_tables_cover_whole_domain():
    assert len(InstructionSet.DEST.code_by_mnemonic) == 8
    assert len(InstructionSet.COMP.code_by_mnemonic) == 28
    assert len(InstructionSet.JUMP.code_by_mnemonic) == 8

    assert InstructionSet.DEST.encode("") == "000"
    assert InstructionSet.JUMP.encode("") == "000"


@pytest.mark.parametrize("address, word", [
    (0, "0000000000000000"),
    (2, "0000000000000010"),
    (16, "0000000000010000"),
    (16384, "0100000000000000"),
    (32767, "0111111111111111"),
])
def test_encode_address(address, word):
    assert InstructionSet.encode_address(address) == word
    assert InstructionSet.encode(AddressCommand(str(address))) == word


@pytest.mark.parametrize("address", [-1, 32768, 65536])
def test_encode_address_overflow(address):
    with pytest.raises(Exceptions.AddressOverflowError) as e:
        InstructionSet.encode_address(address)

    assert e.value.address == address


@pytest.mark.parametrize("dest, comp, jump, word", [
    ("D", "A", "", "1110110000010000"),
    ("D", "D+A", "", "1110000010010000"),
    ("M", "D", "", "1110001100001000"),
    ("", "0", "JMP", "1110101010000111"),
    ("AMD", "D|M", "JLE", "1111010101111110"),
])
def test_encode_compute(dest, comp, jump, word):
    assert InstructionSet.encode_compute(dest, comp, jump) == word
    assert InstructionSet.encode(ComputeCommand(dest, comp, jump)) == word


@pytest.mark.parametrize("dest, comp, jump, field", [
    ("D", "A+D", "", "comp"),
    ("", "", "JMP", "comp"),
    ("DM", "A", "", "dest"),
    ("", "0", "JUMP", "jump"),
])
def test_unknown_mnemonic(dest, comp, jump, field):
    with pytest.raises(Exceptions.UnknownMnemonicError) as e:
        InstructionSet.encode_compute(dest, comp, jump)

    assert e.value.field == field


def test_label_is_not_encoded():
    with pytest.raises(Exceptions.TranslationError):
        InstructionSet.encode(LabelCommand("LOOP"))


def test_decode_reverses_every_compute_mnemonic():
    for comp in InstructionSet.COMP.code_by_mnemonic:
        for dest in InstructionSet.DEST.code_by_mnemonic:
            jump = "JGE"
            word = InstructionSet.encode_compute(dest, comp, jump)
            assert InstructionSet.decode(word) == ComputeCommand(dest, comp, jump)

    for jump in InstructionSet.JUMP.code_by_mnemonic:
        word = InstructionSet.encode_compute("", "D", jump)
        assert InstructionSet.decode(word) == ComputeCommand("", "D", jump)


def test_decode_address():
    assert InstructionSet.decode("0000000000010001") == AddressCommand("17")
    assert str(InstructionSet.decode("0110000000000000")) == "@24576"


@pytest.mark.parametrize("word", [
    "101",
    "1100000000000000",
    "1111111111000000",
    "000000000000000x",
    "00000000000000000",
])
def test_decode_bad_word(word):
    with pytest.raises(Exceptions.BadWordError):
        InstructionSet.decode(word)


def test_command_text():
    assert str(ComputeCommand("D", "D-M", "")) == "D=D-M"
    assert str(ComputeCommand("", "0", "JMP")) == "0;JMP"
    assert str(ComputeCommand("AM", "M+1", "JNE")) == "AM=M+1;JNE"
    assert str(LabelCommand("END")) == "(END)"
    assert str(AddressCommand("i")) == "@i"


def test_predefined_symbols():
    symbols = PredefinedSymbols.symbol_to_address_dict

    assert len(symbols) == 23
    assert [symbols["R{}".format(i)] for i in range(16)] == list(range(16))
    assert (symbols["SP"], symbols["LCL"], symbols["ARG"], symbols["THIS"], symbols["THAT"]) == (0, 1, 2, 3, 4)
    assert symbols["SCREEN"] == 16384
    assert symbols["KBD"] == 24576


def test_code_file_write():
    code = [
        {"mem_address": 0, "word": "0000000000000010", "term": Term(2, "@2")},
        {"mem_address": 1, "word": "1110110000010000", "term": Term(3, "D=A")},
    ]

    with tempfile.TemporaryDirectory() as tmpdirname:
        target = os.path.join(tmpdirname, "target.hack")
        HackCodeFile.write(target, code)

        with open(target, encoding="utf-8") as file:
            assert file.read() == "0000000000000010\n1110110000010000\n"


def test_code_to_debug():
    code = [
        {"mem_address": 0, "word": "0000000000000000", "term": Term(2, "@LOOP")},
        {"mem_address": 1, "word": "1110101010000111", "term": Term(3, "0;JMP")},
        {"mem_address": 2, "word": "0000000000010000"},
    ]

    assert HackCodeFile.code_to_debug(code) == (
        "Code lines count = 3 | 0x3\n"
        "<address> - <hack word> - <decoded> [<- <source>]\n"
        "0000 - 0000000000000000 - @0 <- @LOOP\n"
        "0001 - 1110101010000111 - 0;JMP\n"
        "0002 - 0000000000010000 - @16"
    )
