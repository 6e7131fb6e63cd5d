"""Formatted chat text in the JSON text-component format."""

import json
from dataclasses import dataclass
from typing import Any, BinaryIO, ClassVar, Dict, Iterator, Mapping, Optional, Union

from blockwire.var_int import encode_var_int, read_var_int

MAX_TEXT_LENGTH = 262144
"""The longest JSON string a text may be encoded as, in characters."""

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1


@dataclass(frozen=True, order=True, slots=True)
class Color:
    """An RGB text colour."""

    r: int
    g: int
    b: int

    AQUA: ClassVar["Color"]
    BLACK: ClassVar["Color"]
    BLUE: ClassVar["Color"]
    DARK_AQUA: ClassVar["Color"]
    DARK_BLUE: ClassVar["Color"]
    DARK_GRAY: ClassVar["Color"]
    DARK_GREEN: ClassVar["Color"]
    DARK_PURPLE: ClassVar["Color"]
    DARK_RED: ClassVar["Color"]
    GOLD: ClassVar["Color"]
    GRAY: ClassVar["Color"]
    GREEN: ClassVar["Color"]
    LIGHT_PURPLE: ClassVar["Color"]
    RED: ClassVar["Color"]
    WHITE: ClassVar["Color"]
    YELLOW: ClassVar["Color"]

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not isinstance(channel, int) or not 0 <= channel <= 255:
                raise ValueError(f"colour channel out of range: {channel!r}")

    @classmethod
    def parse(cls, s: str) -> "Color":
        """Parse ``#rrggbb`` or one of the named colours; ValueError otherwise."""
        if len(s) == 7 and s[0] == "#" and all(c in _HEX_DIGITS for c in s[1:]):
            return cls(int(s[1:3], 16), int(s[3:5], 16), int(s[5:7], 16))
        try:
            return _NAMED_COLORS[s]
        except KeyError:
            raise ValueError(f"invalid hex color: {s!r}") from None

    def to_hex(self) -> str:
        """Return the colour as ``#rrggbb``."""
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


Color.AQUA = Color(85, 255, 255)
Color.BLACK = Color(0, 0, 0)
Color.BLUE = Color(85, 85, 255)
Color.DARK_AQUA = Color(0, 170, 170)
Color.DARK_BLUE = Color(0, 0, 170)
Color.DARK_GRAY = Color(85, 85, 85)
Color.DARK_GREEN = Color(0, 170, 0)
Color.DARK_PURPLE = Color(170, 0, 170)
Color.DARK_RED = Color(170, 0, 0)
Color.GOLD = Color(255, 170, 0)
Color.GRAY = Color(170, 170, 170)
Color.GREEN = Color(85, 255, 85)
Color.LIGHT_PURPLE = Color(255, 85, 255)
Color.RED = Color(255, 85, 85)
Color.WHITE = Color(255, 255, 255)
Color.YELLOW = Color(255, 255, 85)

_NAMED_COLORS: Dict[str, Color] = {
    "aqua": Color.AQUA,
    "black": Color.BLACK,
    "blue": Color.BLUE,
    "dark_aqua": Color.DARK_AQUA,
    "dark_blue": Color.DARK_BLUE,
    "dark_gray": Color.DARK_GRAY,
    "dark_green": Color.DARK_GREEN,
    "dark_purple": Color.DARK_PURPLE,
    "dark_red": Color.DARK_RED,
    "gold": Color.GOLD,
    "gray": Color.GRAY,
    "green": Color.GREEN,
    "light_purple": Color.LIGHT_PURPLE,
    "red": Color.RED,
    "white": Color.WHITE,
    "yellow": Color.YELLOW,
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _expect_str(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{what} must be a string, got {value!r}")
    return value


def _expect_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{what} must be an object, got {value!r}")
    return value


_CLICK_ACTIONS = {
    "open_url": str,
    "open_file": str,
    "run_command": str,
    "suggest_command": str,
    "change_page": int,
    "copy_to_clipboard": str,
}


@dataclass(frozen=True, slots=True)
class ClickEvent:
    """What happens when a player clicks a piece of text."""

    action: str
    value: Union[str, int]

    def __post_init__(self) -> None:
        expected = _CLICK_ACTIONS.get(self.action)
        if expected is None:
            raise ValueError(f"unknown click action: {self.action!r}")
        if expected is int:
            if not _is_int(self.value) or not _I32_MIN <= self.value <= _I32_MAX:
                raise ValueError(f"{self.action} needs a 32-bit integer, got {self.value!r}")
        elif not isinstance(self.value, str):
            raise ValueError(f"{self.action} needs a string, got {self.value!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.action, "value": self.value}

    @classmethod
    def from_dict(cls, data: Any) -> "ClickEvent":
        data = _expect_mapping(data, "clickEvent")
        if "action" not in data or "value" not in data:
            raise ValueError("clickEvent needs both 'action' and 'value'")
        return cls(_expect_str(data["action"], "click action"), data["value"])


_HOVER_ACTIONS = ("show_text", "show_item", "show_entity")


@dataclass(frozen=True)
class HoverEvent:
    """What is shown when a player hovers over a piece of text.

    ``text`` holds the shown text or the entity name, ``ident`` the item
    id or the entity type, ``count`` the item count.
    """

    action: str
    text: Optional["Text"] = None
    ident: Optional[str] = None
    count: Optional[int] = None

    def __post_init__(self) -> None:
        if self.action not in _HOVER_ACTIONS:
            raise ValueError(f"unknown hover action: {self.action!r}")
        if self.action in ("show_text", "show_entity") and not isinstance(self.text, Text):
            raise ValueError(f"{self.action} needs a text")
        if self.action in ("show_item", "show_entity") and not isinstance(self.ident, str):
            raise ValueError(f"{self.action} needs an identifier")
        if self.count is not None and not _is_int(self.count):
            raise ValueError(f"item count must be an integer, got {self.count!r}")

    @classmethod
    def show_text(cls, text: Union["Text", str]) -> "HoverEvent":
        return cls("show_text", text=into_text(text))

    @classmethod
    def show_item(cls, item_id: str, count: Optional[int] = None) -> "HoverEvent":
        return cls("show_item", ident=item_id, count=count)

    @classmethod
    def show_entity(cls, name: Union["Text", str], kind: str) -> "HoverEvent":
        return cls("show_entity", text=into_text(name), ident=kind)

    def to_dict(self) -> Dict[str, Any]:
        contents: Any
        if self.action == "show_text":
            contents = self.text.to_dict()  # type: ignore[union-attr]
        elif self.action == "show_item":
            contents = {"id": self.ident, "count": self.count}
        else:
            contents = {"name": self.text.to_dict(), "type": self.ident}  # type: ignore[union-attr]
        return {"action": self.action, "contents": contents}

    @classmethod
    def from_dict(cls, data: Any) -> "HoverEvent":
        data = _expect_mapping(data, "hoverEvent")
        if "action" not in data or "contents" not in data:
            raise ValueError("hoverEvent needs both 'action' and 'contents'")
        action = _expect_str(data["action"], "hover action")
        contents = data["contents"]
        if action == "show_text":
            return cls(action, text=Text.from_dict(contents))
        contents = _expect_mapping(contents, "hover contents")
        if action == "show_item":
            if "id" not in contents:
                raise ValueError("show_item needs an 'id'")
            return cls(action, ident=_expect_str(contents["id"], "item id"), count=contents.get("count"))
        if action == "show_entity":
            if "name" not in contents or "type" not in contents:
                raise ValueError("show_entity needs 'name' and 'type'")
            return cls(
                action,
                text=Text.from_dict(contents["name"]),
                ident=_expect_str(contents["type"], "entity type"),
            )
        raise ValueError(f"unknown hover action: {action!r}")


_FLAGS = ("bold", "italic", "underlined", "strikethrough", "obfuscated")


class Text:
    """A text component: plain or translated content, styling and children.

    Every formatting method returns a new text and leaves the original
    untouched.
    """

    __slots__ = (
        "_content",
        "_translated",
        "_color",
        "_font",
        "_bold",
        "_italic",
        "_underlined",
        "_strikethrough",
        "_obfuscated",
        "_insertion",
        "_click_event",
        "_hover_event",
        "_extra",
    )

    def __init__(self, content: str = "", translated: bool = False) -> None:
        if not isinstance(content, str):
            raise TypeError(f"text content must be a string, got {content!r}")
        self._content = content
        self._translated = translated
        self._color: Optional[Color] = None
        self._font: Optional[str] = None
        self._bold: Optional[bool] = None
        self._italic: Optional[bool] = None
        self._underlined: Optional[bool] = None
        self._strikethrough: Optional[bool] = None
        self._obfuscated: Optional[bool] = None
        self._insertion: Optional[str] = None
        self._click_event: Optional[ClickEvent] = None
        self._hover_event: Optional[HoverEvent] = None
        self._extra: list = []

    @classmethod
    def text(cls, plain: str) -> "Text":
        """A plain text component."""
        return cls(plain)

    @classmethod
    def translate(cls, key: str) -> "Text":
        """A component translated by the client from ``key``."""
        return cls(key, translated=True)

    def _with(self, **changes: Any) -> "Text":
        new = Text.__new__(Text)
        for name in Text.__slots__:
            setattr(new, name, getattr(self, name))
        new._extra = list(self._extra)
        for name, value in changes.items():
            setattr(new, "_" + name, value)
        return new

    def _state(self) -> tuple:
        return tuple(getattr(self, name) for name in Text.__slots__)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Text):
            return NotImplemented
        return self._state() == other._state()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Text({self.to_json()})"

    def _plain_parts(self) -> Iterator[str]:
        yield self._content
        for child in self._extra:
            yield from child._plain_parts()

    def to_plain(self) -> str:
        """Return the content of this text and its children without formatting."""
        return "".join(self._plain_parts())

    def __str__(self) -> str:
        return self.to_plain()

    def is_empty(self) -> bool:
        """True if neither this text nor any child holds a character."""
        return not self._content and all(child.is_empty() for child in self._extra)

    def color(self, color: Color) -> "Text":
        return self._with(color=color)

    def clear_color(self) -> "Text":
        return self._with(color=None)

    def font(self, font: str) -> "Text":
        return self._with(font=font)

    def clear_font(self) -> "Text":
        return self._with(font=None)

    def bold(self) -> "Text":
        return self._with(bold=True)

    def not_bold(self) -> "Text":
        return self._with(bold=False)

    def clear_bold(self) -> "Text":
        return self._with(bold=None)

    def italic(self) -> "Text":
        return self._with(italic=True)

    def not_italic(self) -> "Text":
        return self._with(italic=False)

    def clear_italic(self) -> "Text":
        return self._with(italic=None)

    def underlined(self) -> "Text":
        return self._with(underlined=True)

    def not_underlined(self) -> "Text":
        return self._with(underlined=False)

    def clear_underlined(self) -> "Text":
        return self._with(underlined=None)

    def strikethrough(self) -> "Text":
        return self._with(strikethrough=True)

    def not_strikethrough(self) -> "Text":
        return self._with(strikethrough=False)

    def clear_strikethrough(self) -> "Text":
        return self._with(strikethrough=None)

    def obfuscated(self) -> "Text":
        return self._with(obfuscated=True)

    def not_obfuscated(self) -> "Text":
        return self._with(obfuscated=False)

    def clear_obfuscated(self) -> "Text":
        return self._with(obfuscated=None)

    def insertion(self, insertion: str) -> "Text":
        return self._with(insertion=insertion)

    def clear_insertion(self) -> "Text":
        return self._with(insertion=None)

    def on_click_open_url(self, url: str) -> "Text":
        return self._with(click_event=ClickEvent("open_url", url))

    def on_click_run_command(self, command: str) -> "Text":
        return self._with(click_event=ClickEvent("run_command", command))

    def on_click_suggest_command(self, command: str) -> "Text":
        return self._with(click_event=ClickEvent("suggest_command", command))

    def on_click_change_page(self, page: int) -> "Text":
        return self._with(click_event=ClickEvent("change_page", page))

    def on_click_copy_to_clipboard(self, text: str) -> "Text":
        return self._with(click_event=ClickEvent("copy_to_clipboard", text))

    def clear_click_event(self) -> "Text":
        return self._with(click_event=None)

    def on_hover_show_text(self, text: Union["Text", str]) -> "Text":
        return self._with(hover_event=HoverEvent.show_text(text))

    def clear_hover_event(self) -> "Text":
        return self._with(hover_event=None)

    def add_child(self, text: Union["Text", str]) -> "Text":
        """Return a copy of this text with ``text`` appended as a child."""
        new = self._with()
        new._extra.append(into_text(text))
        return new

    def __add__(self, other: Union["Text", str]) -> "Text":
        if not isinstance(other, (Text, str)):
            return NotImplemented
        return self.add_child(other)

    def __radd__(self, other: str) -> "Text":
        if not isinstance(other, str):
            return NotImplemented
        return Text.text(other).add_child(self)

    def __iadd__(self, other: Union["Text", str]) -> "Text":
        if not isinstance(other, (Text, str)):
            return NotImplemented
        return self.add_child(other)

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON text-component object for this text."""
        data: Dict[str, Any] = {"translate" if self._translated else "text": self._content}
        if self._color is not None:
            data["color"] = self._color.to_hex()
        if self._font is not None:
            data["font"] = self._font
        for flag in _FLAGS:
            value = getattr(self, "_" + flag)
            if value is not None:
                data[flag] = value
        if self._insertion is not None:
            data["insertion"] = self._insertion
        if self._click_event is not None:
            data["clickEvent"] = self._click_event.to_dict()
        if self._hover_event is not None:
            data["hoverEvent"] = self._hover_event.to_dict()
        if self._extra:
            data["extra"] = [child.to_dict() for child in self._extra]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Text":
        """Build a text from a JSON text-component object; ValueError if malformed."""
        data = _expect_mapping(data, "text component")
        if isinstance(data.get("text"), str):
            text = cls(data["text"])
        elif isinstance(data.get("translate"), str):
            text = cls(data["translate"], translated=True)
        else:
            raise ValueError("text component has neither 'text' nor 'translate'")

        color = data.get("color")
        if color is not None:
            text._color = Color.parse(_expect_str(color, "color"))
        font = data.get("font")
        if font is not None:
            text._font = _expect_str(font, "font")
        for flag in _FLAGS:
            value = data.get(flag)
            if value is not None:
                if not isinstance(value, bool):
                    raise ValueError(f"{flag} must be a boolean, got {value!r}")
                setattr(text, "_" + flag, value)
        insertion = data.get("insertion")
        if insertion is not None:
            text._insertion = _expect_str(insertion, "insertion")
        click = data.get("clickEvent")
        if click is not None:
            text._click_event = ClickEvent.from_dict(click)
        hover = data.get("hoverEvent")
        if hover is not None:
            text._hover_event = HoverEvent.from_dict(hover)
        if "extra" in data:
            extra = data["extra"]
            if not isinstance(extra, list):
                raise ValueError(f"extra must be a list, got {extra!r}")
            text._extra = [cls.from_dict(child) for child in extra]
        return text

    def to_json(self) -> str:
        """Return the compact JSON form of this text."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_json(cls, s: str) -> "Text":
        """Parse a text from JSON; ValueError if it is not a valid component."""
        return cls.from_dict(json.loads(s))

    def encode(self) -> bytes:
        """Return the wire form: a length-prefixed UTF-8 JSON string."""
        payload = self.to_json()
        if len(payload) > MAX_TEXT_LENGTH:
            raise ValueError(f"text JSON is longer than {MAX_TEXT_LENGTH} characters")
        raw = payload.encode("utf-8")
        return encode_var_int(len(raw)) + raw

    @classmethod
    def read(cls, stream: BinaryIO) -> "Text":
        """Read one text in wire form from a binary stream."""
        length = read_var_int(stream)
        if not 0 <= length <= MAX_TEXT_LENGTH * 4:
            raise ValueError(f"invalid text length of {length}")
        raw = stream.read(length)
        if len(raw) < length:
            raise EOFError("unexpected end of data while reading a text")
        payload = raw.decode("utf-8")
        if len(payload) > MAX_TEXT_LENGTH:
            raise ValueError(f"text JSON is longer than {MAX_TEXT_LENGTH} characters")
        return cls.from_json(payload)


def into_text(value: Union[Text, str]) -> Text:
    """Return ``value`` as a Text, wrapping a string as plain text."""
    if isinstance(value, Text):
        return value
    if isinstance(value, str):
        return Text.text(value)
    raise TypeError(f"cannot convert {type(value).__name__} to Text")