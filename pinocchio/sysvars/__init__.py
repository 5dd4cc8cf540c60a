"""Namespace for cluster system accounts; it holds no modules in this release."""