# relaykit

relaykit is a set of small, self-contained pieces for building a relay proxy server.

- **`relaykit.jsonparser`**: `parse()` is a lenient JSON parser for configuration files. It accepts trailing commas in arrays and objects. An unknown `\x` escape yields the character itself, and integers wrap at 64 bits. With `enable_comments=True` it also accepts `//` and `/* */` comments. `max_memory` caps the storage a parse may account for, and `0` means no limit. Errors raise `JsonParseError`, a `ValueError` with `line` and `column` attributes. The result is a `relaykit.jsontypes.JsonValue` tree.
- **`relaykit.jsontypes`**: `JsonValue` and `JsonType`. Lookups never raise. A missing member, an index out of range, or a lookup on the wrong kind of value gives the empty `NONE` value. `str()`, `int()`, `float()` and `bool()` fall back to `""`, `0`, `0.0` and `False`. `to_python()` converts a tree to dicts, lists and scalars, and where a name repeats the first member wins.
- **`relaykit.tls`**: `parse_tls_header()` returns the SNI host name of a TLS ClientHello. Otherwise it raises one of these `TlsError` subclasses:
  - `IncompleteRequest` when more data is needed
  - `NoHostname` when no name can be present
  - `InvalidClientHello` when the data is malformed
- **`relaykit.netutils`**: provides these functions and a `SockAddr` value type:
  - `validate_hostname()`
  - `sockaddr_cmp()` / `sockaddr_cmp_addr()` for ordering addresses
  - `get_sockaddr_len()`
  - `get_sockaddr()`, which resolves a host and port and can retry with back-off when `block=True`
  - `bind_to_address()`
  - `set_reuseport()`
- **`relaykit.rule`**: `Rule` holds one regular expression and `RuleList` keeps rules in order. `lookup()` returns the first rule whose pattern is found in a name. A malformed rule raises `RuleError`.
- **`relaykit.resolv`**: `Resolver` asks for A and AAAA records through dnspython and returns the best address. `choose_address()` picks it according to a `ResolvMode`.
- **`relaykit.obfsutil`**: `get_head_size()` gives the length of an address header. `XorShift128Plus` is a xorshift128+ generator with a 32-bit seed.
- **`relaykit.linkedlist`**: `LinkedList` is an ordered container with these operations:
  - insertion at both ends
  - deletion by a match callback or by index
  - `modify_at()`
  - `have_same()` / `have_same_cmp()`
  - `foreach()`
  - an in-place selection `sort()`

## Installation

```
pip install relaykit
```

## Examples

Parse a configuration document that contains comments:

```python
from relaykit.jsonparser import parse, JsonParseError

conf = parse(b'{"server_port": 8388, // port\n "timeout": "60"}', enable_comments=True)
int(conf["server_port"])   # 8388
str(conf["timeout"])       # "60"
int(conf["missing"])       # 0
conf.to_python()           # {"server_port": 8388, "timeout": "60"}

try:
    parse(b"[1, 2")
except JsonParseError as exc:
    print(exc.line, exc.column)
```

Get the SNI host name from the first bytes a client sends:

```python
from relaykit.tls import parse_tls_header, IncompleteRequest, NoHostname

try:
    hostname = parse_tls_header(first_packet)
except IncompleteRequest:
    ...  # wait for more data
except NoHostname:
    ...  # the client sent no SNI
```

Check a host name and look up a rule for it:

```python
from relaykit.netutils import validate_hostname
from relaykit.rule import Rule, RuleList

validate_hostname("www.example.com")   # True
validate_hostname("-bad.example.com")  # False

rules = RuleList()
rule = Rule()
rule.accept_arg(r"\.example\.com$")
rule.init()
rules.add(rule)
rules.lookup("www.example.com")        # rule
rules.lookup("example.org")            # None
```

Resolve a name and prefer IPv6 addresses:

```python
from relaykit.resolv import Resolver

resolver = Resolver(nameservers=["127.0.0.1"], ipv6first=True)
addr = resolver.resolve("example.com", 443)   # SockAddr or None
```

Sort a `LinkedList` in ascending order:

```python
from relaykit.linkedlist import LinkedList

items = LinkedList([3, 1, 2])
items.sort(lambda current, candidate: current > candidate)
list(items)   # [1, 2, 3]
```

## What this package does not do

relaykit is a library of parts. It does not include these:

- a relay server or event loop
- a command-line program
- configuration-file handling beyond parsing JSON
- ciphers
- obfuscation or protocol plugins
- access-control lists or block lists

You put those together yourself on top of these modules.

## Running the tests

```
pip install -e ".[test]"
pytest
```