"""
Literal Readers
===============

Turns a pointer into a readable literal depending on which Mach-O section it
points into. Each reader takes the process target and the pointer and returns
the rendered literal:

    __cstring          "text"              C string at the pointer
    __cfstring         @"text"             pointer -> pointer -> C string
    __objc_methtype    text                method type encoding
    __objc_selrefs     @selector(name)     selector name
    __objc_classrefs   _OBJC_CLASS_$_Foo   class symbol
    __objc_superrefs   _OBJC_CLASS_$_Bar   superclass symbol
    __objc_protorefs   @protocol(name)     protocol name
    __ustring          u"text"             UTF-16 string

Read failures are not caught here: a MemoryAccessError raised by the target
propagates to the caller.

Copyright (c) 2025-2026 Machscope Contributors
"""

from typing import Callable, Dict, Optional


LiteralReader = Callable[[object, int], Optional[str]]


def read_cstring_literal(target, pointer: int) -> str:
    return f'"{target.read_cstring(pointer)}"'


def read_cfstring_literal(target, pointer: int) -> str:
    data = target.read_pointer(target.read_pointer(pointer))
    return f'@"{target.read_cstring(data)}"'


def read_method_type(target, pointer: int) -> str:
    return target.read_cstring(pointer)


def read_selector(target, pointer: int) -> str:
    name = target.read_pointer(pointer + target.pointer_size * 2)
    return f"@selector({target.read_cstring(name)})"


def read_class_ref(target, pointer: int) -> Optional[str]:
    return target.symbolicate(target.read_pointer(pointer))


def read_superclass_ref(target, pointer: int) -> Optional[str]:
    cls = target.read_pointer(pointer)
    return target.symbolicate(target.read_pointer(cls + target.pointer_size))


def read_protocol_ref(target, pointer: int) -> str:
    # protocol_t: isa, then the mangled name pointer
    protocol = target.read_pointer(pointer)
    name = target.read_pointer(protocol + target.pointer_size)
    return f"@protocol({target.read_cstring(name)})"


def read_utf16_literal(target, pointer: int) -> str:
    return f'u"{target.read_utf16_string(pointer)}"'


LITERAL_READERS: Dict[str, LiteralReader] = {
    "__cstring": read_cstring_literal,
    "__cfstring": read_cfstring_literal,
    "__objc_methtype": read_method_type,
    "__objc_selrefs": read_selector,
    "__objc_classrefs": read_class_ref,
    "__objc_superrefs": read_superclass_ref,
    "__objc_protorefs": read_protocol_ref,
    "__ustring": read_utf16_literal,
}
