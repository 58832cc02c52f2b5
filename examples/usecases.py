"""Common use cases: casting, validation, sanitization, pipelines, async checks."""

import asyncio
import re

from chainit import SKIP, chainit, chainit_async, nested, plugin
from chainit.plugins import conforms, required, to_number, trim_strings

EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def type_casting():
    form = chainit({}, use=[trim_strings(), plugin(to_number(), only="age")])
    form.set("name", "  Mona  ").set("age", "42").set("bio", " hello ")
    print("after trim + cast:", form.value())


def validation():
    def validate(key, value, ctx):
        if key == "email" and not EMAIL.match(value):
            return SKIP
        if key == "age" and int(value) < 0:
            return SKIP

    reg = chainit({}, use=[trim_strings(), validate], props={"age": [conforms(int)]})
    reg.set("email", "bad-email").set("email", "ok@example.com")
    reg.set("age", -5).set("age", "25")
    print("validated:", reg.value())

    try:
        chainit({}, props={"email": [required()]}).set("email", "")
    except ValueError as e:
        print("rejected:", e)


def sanitization():
    script = re.compile(r"<script[\s\S]*?>[\s\S]*?</script>", re.IGNORECASE)

    def strip_scripts(key, value, ctx):
        if isinstance(value, str):
            return script.sub("", value)

    san = chainit({}, use=[strip_scripts])
    san.set("comment", "Hello<script>alert(1)</script>")
    print("sanitized:", san.value())


def pipelines():
    dirty = chainit({}).set("name", "  ").set("age", 0).set("note", "")
    dirty.pipe(
        lambda record: {
            k: v for k, v in record.items() if v is not None and not (isinstance(v, str) and not v.strip())
        }
    )
    print("cleaned:", dirty.value())

    derived = chainit({"first": "John", "last": "Doe"})
    derived.pipe(lambda o: {**o, "full": f"{o['first']} {o['last']}"})
    print("pipeline derived:", derived.value())

    profile = chainit({"user": {"role": "guest"}})
    profile.set("user", nested(lambda u, _: u.set("name", "Nested")))
    print("nested:", profile.value())


async def async_checks():
    taken = {"user1", "alice"}

    async def username_check(key, value, ctx):
        if key == "username":
            await asyncio.sleep(0.03)
            if value in taken:
                return SKIP
        return value

    chain = chainit_async({}, use=[username_check])
    chain.set("username", "alice")
    chain.set("username", "new_user")
    print("async final:", await chain.value())


if __name__ == "__main__":
    type_casting()
    validation()
    sanitization()
    pipelines()
    asyncio.run(async_checks())
