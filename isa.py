"""Представление исходного и машинного кода Hack.

- Машина 16-битная, у инструкции два формата:

  - A-инструкция: `0 | v v v v v v v v v v v v v v v` - 15 бит адреса / константы.
  - C-инструкция: `1 1 1 | a c c c c c c | d d d | j j j` - вычисление, куда положить, куда прыгнуть.

- Машинный код - текст: одна инструкция на строку, строка из 16 символов '0' / '1'.

"""

import re
from collections import namedtuple


class Exceptions:
    class TranslationError(Exception):
        def __init__(self, msg, term=None):
            self.term = term
            if term is not None:
                msg = "[{}] `{}` - {}".format(term.line, term.mnemonic, msg)
            super().__init__(msg)

    class UnknownMnemonicError(TranslationError):
        def __init__(self, field, mnemonic, term=None):
            self.field = field
            self.mnemonic = mnemonic
            super().__init__("`{}` - неизвестная мнемоника поля {}".format(mnemonic, field), term)

    class BadAddressError(TranslationError):
        def __init__(self, operand, term=None):
            self.operand = operand
            super().__init__(
                "`{}` - плохой адрес, можно так = <неотрицательное целое> | <символ не с цифры>".format(operand),
                term)

    class AddressOverflowError(TranslationError):
        def __init__(self, address, term=None):
            self.address = address
            super().__init__("адрес {} не влезает в {} бит".format(address, InstructionSet.address_bits), term)

    class BadWordError(TranslationError):
        def __init__(self, word, term=None):
            self.word = word
            super().__init__("`{}` - не машинное слово".format(word), term)


class Term(namedtuple("Term", "line mnemonic")):
    """Описание выражения из исходного текста программы.

    Сделано через класс, чтобы был docstring.
    """


class AddressCommand(namedtuple("AddressCommand", "symbol")):
    """`@symbol` - символ или неотрицательное число"""

    def __str__(self):
        return "@" + self.symbol


class ComputeCommand(namedtuple("ComputeCommand", "dest comp jump")):
    """`dest=comp;jump`, `dest` и `jump` могут быть пустыми"""

    def __str__(self):
        text = self.comp
        if self.dest:
            text = self.dest + "=" + text
        if self.jump:
            text = text + ";" + self.jump
        return text


class LabelCommand(namedtuple("LabelCommand", "symbol")):
    """`(symbol)` - метка, машинного кода не порождает"""

    def __str__(self):
        return "(" + self.symbol + ")"


class InvalidCommand(namedtuple("InvalidCommand", "text")):
    def __str__(self):
        return self.text


class Bitfield:
    """
    Поле C-инструкции фиксированной ширины: мнемоника <-> строка бит.
    """

    def __init__(self, name: str, width: int, code_by_mnemonic: dict):
        self.name = name
        self.width = width
        self.code_by_mnemonic = code_by_mnemonic
        self.mnemonic_by_code = {code: mnemonic for mnemonic, code in code_by_mnemonic.items()}

        assert len(self.mnemonic_by_code) == len(code_by_mnemonic), "Коды поля {} повторяются".format(name)
        assert all(len(code) == width for code in code_by_mnemonic.values()), "Ширина поля {} != {}".format(name, width)

    def encode(self, mnemonic: str):
        code = self.code_by_mnemonic.get(mnemonic)
        if code is None:
            raise Exceptions.UnknownMnemonicError(self.name, mnemonic)
        return code

    def decode(self, code: str):
        mnemonic = self.mnemonic_by_code.get(code)
        if mnemonic is None:
            raise Exceptions.BadWordError(code)
        return mnemonic


class InstructionSet:
    """
    Кодирование инструкций.

    A-инструкция:

    0 | v v v v v v v v v v v v v v v

    C-инструкция:

    1 | 1 | 1 | a | c1 | c2 | c3 | c4 | c5 | c6 | d1 | d2 | d3 | j1 | j2 | j3

    бит a == 0 => второй операнд `A`

    бит a == 1 => второй операнд `M` (память по адресу `A`)
    """

    word_bits = 16
    address_bits = 15
    address_max_uint = (1 << address_bits) - 1

    address_prefix = "0"
    compute_prefix = "111"

    word_regex = re.compile(r"[01]{16}")

    DEST = Bitfield("dest", 3, {
        "": "000",
        "M": "001",
        "D": "010",
        "MD": "011",
        "A": "100",
        "AM": "101",
        "AD": "110",
        "AMD": "111",
    })

    COMP = Bitfield("comp", 7, {
        # a == 0
        "0": "0101010",
        "1": "0111111",
        "-1": "0111010",
        "D": "0001100",
        "A": "0110000",
        "!D": "0001101",
        "!A": "0110001",
        "-D": "0001111",
        "-A": "0110011",
        "D+1": "0011111",
        "A+1": "0110111",
        "D-1": "0001110",
        "A-1": "0110010",
        "D+A": "0000010",
        "D-A": "0010011",
        "A-D": "0000111",
        "D&A": "0000000",
        "D|A": "0010101",
        # a == 1
        "M": "1110000",
        "!M": "1110001",
        "-M": "1110011",
        "M+1": "1110111",
        "M-1": "1110010",
        "D+M": "1000010",
        "D-M": "1010011",
        "M-D": "1000111",
        "D&M": "1000000",
        "D|M": "1010101",
    })

    JUMP = Bitfield("jump", 3, {
        "": "000",
        "JGT": "001",
        "JEQ": "010",
        "JGE": "011",
        "JLT": "100",
        "JNE": "101",
        "JLE": "110",
        "JMP": "111",
    })

    @staticmethod
    def encode_address(address: int):
        if not 0 <= address <= InstructionSet.address_max_uint:
            raise Exceptions.AddressOverflowError(address)

        return InstructionSet.address_prefix + format(address, "0{}b".format(InstructionSet.address_bits))

    @staticmethod
    def encode_compute(dest: str, comp: str, jump: str):
        # порядок полей в слове: comp, dest, jump
        return (InstructionSet.compute_prefix
                + InstructionSet.COMP.encode(comp)
                + InstructionSet.DEST.encode(dest)
                + InstructionSet.JUMP.encode(jump))

    @staticmethod
    def encode(command):
        """
        Закодировать уже разрешенную команду. У `AddressCommand` символ должен быть числом.
        """
        if isinstance(command, AddressCommand):
            return InstructionSet.encode_address(int(command.symbol))
        if isinstance(command, ComputeCommand):
            return InstructionSet.encode_compute(command.dest, command.comp, command.jump)

        raise Exceptions.TranslationError("`{}` не кодируется в машинное слово".format(command))

    @staticmethod
    def decode(word: str):
        """
        Обратное преобразование: машинное слово -> `AddressCommand` (с числом) или `ComputeCommand`.
        """
        if InstructionSet.word_regex.fullmatch(word) is None:
            raise Exceptions.BadWordError(word)

        if word.startswith(InstructionSet.address_prefix):
            return AddressCommand(str(int(word[1:], 2)))

        if not word.startswith(InstructionSet.compute_prefix):
            raise Exceptions.BadWordError(word)

        comp, dest, jump = word[3:10], word[10:13], word[13:16]
        try:
            return ComputeCommand(InstructionSet.DEST.decode(dest),
                                  InstructionSet.COMP.decode(comp),
                                  InstructionSet.JUMP.decode(jump))
        except Exceptions.BadWordError:
            raise Exceptions.BadWordError(word)


class PredefinedSymbols:
    """
    Символы, которые есть в таблице до начала трансляции.

    Виртуальные регистры `R0`..`R15` - первые 16 слов памяти, `SP`, `LCL`, `ARG`, `THIS`, `THAT` - их синонимы.
    `SCREEN` и `KBD` - отображенные в память устройства.
    """

    first_variable_address = 16

    symbol_to_address_dict = {
        "SP": 0,
        "LCL": 1,
        "ARG": 2,
        "THIS": 3,
        "THAT": 4,
        "SCREEN": 0x4000,
        "KBD": 0x6000,
        **{"R{}".format(i): i for i in range(16)}
    }


class HackCodeFile:
    """
    Структура файла такая:

    - <16 символов '0'/'1'> - инструкция по адресу 0
    - <16 символов '0'/'1'> - инструкция по адресу 1
    - ...

    Адрес инструкции - номер строки, начиная с 0.
    """

    max_debug_str_len = 32

    @staticmethod
    def code_to_text(code):
        return "".join(line["word"] + "\n" for line in code)

    @staticmethod
    def code_to_debug(code):
        debug = "Code lines count = {} | {}\n".format(len(code), hex(len(code)))
        debug += "<address> - <hack word> - <decoded> [<- <source>]\n"

        lines = []
        for line in code:
            hex_address = format(line["mem_address"], "04x")

            decoded = str(InstructionSet.decode(line["word"]))
            listing_line = "{} - {} - {}".format(hex_address, line["word"], decoded)

            # источник пишем, только если он отличается от раскодированного (метки, переменные)
            if "term" in line and line["term"].mnemonic != decoded:
                mnemonic = line["term"].mnemonic
                if len(mnemonic) > HackCodeFile.max_debug_str_len:
                    mnemonic = mnemonic[:HackCodeFile.max_debug_str_len] + "..."
                listing_line += " <- " + mnemonic

            lines.append(listing_line)

        return debug + "\n".join(lines)

    @staticmethod
    def write(filename, code):
        """
        Записать машинный код в файл.
        """

        with open(filename, "w", encoding="utf-8") as file:
            file.write(HackCodeFile.code_to_text(code))

