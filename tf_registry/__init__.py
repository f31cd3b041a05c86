"""Terraform Registry Server - S3をバックエンドとするTerraformモジュールレジストリ（Read専用）"""

__version__ = '1.0.0'
