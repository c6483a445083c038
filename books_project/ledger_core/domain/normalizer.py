"""
Account name normalization.

Ledger rows, imported journal lines and user input spell the same GL
account in different ways ("Sales & Marketing", "sales/marketing",
" SALES-MARKETING "). Every lookup against the Chart of Accounts goes
through ``normalize`` so those spellings meet on one key.
"""
import re

_SEPARATORS = re.compile(r"[&/\-_]")
_NON_WORD = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(name):
    """Canonical lookup key for a GL account name ("" for None / blank)."""
    if not name:
        return ""
    key = str(name).lower().strip()
    key = _SEPARATORS.sub(" ", key)
    key = _NON_WORD.sub("", key)
    return _WHITESPACE.sub(" ", key).strip()


class AccountIndex:
    """
    Chart of Accounts snapshot keyed by normalized name.

    Works with anything that has a ``gl_account`` attribute (Account rows
    or plain records). On collisions the first account wins.
    """

    def __init__(self, accounts):
        self.accounts = list(accounts)
        self._by_key = {}
        for account in self.accounts:
            key = normalize(account.gl_account)
            if key and key not in self._by_key:
                self._by_key[key] = account

    def __len__(self):
        return len(self._by_key)

    def __contains__(self, name):
        return self.resolve(name) is not None

    def resolve(self, name):
        return self._by_key.get(normalize(name))

    def canonical(self, name):
        """The CoA spelling of ``name``, or None when it is not in the chart."""
        account = self.resolve(name)
        return account.gl_account if account is not None else None

    def unresolved(self, names):
        """Names (as given) that do not match any account."""
        return sorted({n for n in names if self.resolve(n) is None}, key=str)
