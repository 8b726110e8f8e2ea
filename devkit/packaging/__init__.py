from devkit.packaging.assembler import PackageAssembler, PackageContext

__all__ = ["PackageAssembler", "PackageContext"]
