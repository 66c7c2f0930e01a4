"""
Модуль: ERC-20 custody через web3
Описание: Реализация CustodyService поверх ERC-20 токенов. Депозит забирается
через transferFrom (нужен allowance от вкладчика), выплаты идут через transfer
с custody кошелька. asset_id - адрес контракта токена.
Зависимости: web3, tenacity (через utils.retry)
Автор: Staking Pools Team
"""

import threading
from typing import Any, Dict, Optional

from web3 import Web3
from web3.providers import HTTPProvider

from config.constants import ERC20_ABI
from config.settings import get_settings
from core.custody import CustodyService, TransferResult
from core.exceptions import TransferOutcomeUnknown
from utils.converters import TokenConverter
from utils.logger import get_logger
from utils.retry import rpc_retry, is_transient_error
from utils.validators import AddressValidator, ValidationError

logger = get_logger("TokenCustody")


class TokenCustody(CustodyService):
    """
    Custody ERC-20 токенов.

    Перевод считается успешным только после receipt со status == 1.
    Отправка транзакции не повторяется: повтор мог бы перевести дважды.
    Повторяются только чтения: nonce, allowance, балансы и receipt.
    """

    def __init__(self,
                 w3: Optional[Web3] = None,
                 custody_address: Optional[str] = None,
                 private_key: Optional[str] = None,
                 chain_id: Optional[int] = None):
        self.settings = get_settings()

        if w3 is None:
            provider = HTTPProvider(
                self.settings.rpc_url,
                request_kwargs={'timeout': self.settings.connection_timeout}
            )
            w3 = Web3(provider)
        self.w3 = w3

        self.custody_address = AddressValidator.normalize_address(
            custody_address or self.settings.custody_address
        )
        self.private_key = private_key or self.settings.custody_private_key
        self.chain_id = chain_id or self.settings.chain_id
        self.gas_limit = self.settings.gas_limit_transfer
        self.tx_timeout = self.settings.tx_timeout_seconds

        self._contracts: Dict[str, Any] = {}
        self._nonce_lock = threading.Lock()

        logger.info(f"🏦 TokenCustody инициализирован: {self.custody_address}, chain_id={self.chain_id}")

    def _token(self, asset_id: str):
        address = AddressValidator.normalize_address(asset_id)
        contract = self._contracts.get(address)
        if contract is None:
            contract = self.w3.eth.contract(address=address, abi=ERC20_ABI)
            self._contracts[address] = contract
        return contract

    @rpc_retry()
    def _pending_nonce(self) -> int:
        return self.w3.eth.get_transaction_count(self.custody_address, 'pending')

    @rpc_retry()
    def allowance(self, asset_id: str, owner: str) -> int:
        """Сколько custody может забрать у owner"""
        owner = AddressValidator.normalize_address(owner)
        return self._token(asset_id).functions.allowance(owner, self.custody_address).call()

    @rpc_retry()
    def balance_of(self, asset_id: str, holder: str) -> int:
        holder = AddressValidator.normalize_address(holder)
        return self._token(asset_id).functions.balanceOf(holder).call()

    def reserve_of(self, asset_id: str) -> int:
        """Баланс custody кошелька в токене asset_id"""
        return self.balance_of(asset_id, self.custody_address)

    def transfer_in(self, asset_id: str, sender: str, amount: int) -> TransferResult:
        try:
            sender_address = AddressValidator.normalize_address(sender)
            token = self._token(asset_id)
        except ValidationError as e:
            return TransferResult(False, asset_id, sender, amount, error=str(e))

        allowed = self.allowance(asset_id, sender_address)
        if allowed < amount:
            return TransferResult(False, asset_id, sender, amount,
                                  error=f"allowance too low: {allowed} < {amount}")

        call = token.functions.transferFrom(sender_address, self.custody_address, amount)
        return self._send(call, asset_id, sender, amount, "IN")

    def transfer_out(self, asset_id: str, recipient: str, amount: int) -> TransferResult:
        try:
            recipient_address = AddressValidator.normalize_address(recipient)
            token = self._token(asset_id)
        except ValidationError as e:
            return TransferResult(False, asset_id, recipient, amount, error=str(e))

        # Перевод на нулевой адрес сжигает токены
        if AddressValidator.is_zero_address(recipient_address):
            return TransferResult(False, asset_id, recipient, amount, error="recipient is the zero address")

        call = token.functions.transfer(recipient_address, amount)
        return self._send(call, asset_id, recipient, amount, "OUT")

    @rpc_retry()
    def _fetch_receipt(self, tx_hash):
        return self.w3.eth.get_transaction_receipt(tx_hash)

    def _send(self, call, asset_id: str, party: str, amount: int, direction: str) -> TransferResult:
        """
        Подписать, отправить и дождаться receipt.

        Ошибка до отправки дает неуспешный результат. Если транзакция уже
        могла уйти в сеть, а receipt так и не получен, поднимается
        TransferOutcomeUnknown: такой перевод нельзя считать несостоявшимся.
        """
        with self._nonce_lock:
            try:
                tx = call.build_transaction({
                    'from': self.custody_address,
                    'nonce': self._pending_nonce(),
                    'gas': self.gas_limit,
                    'gasPrice': self.w3.eth.gas_price,
                    'chainId': self.chain_id
                })
                signed = self.w3.eth.account.sign_transaction(tx, self.private_key)
            except Exception as e:
                logger.error(f"❌ {direction} {asset_id} {party}: транзакция не подписана: {e}")
                return TransferResult(False, asset_id, party, amount, error=str(e))

            try:
                tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
            except Exception as e:
                if is_transient_error(e):
                    # Узел мог принять транзакцию до обрыва соединения
                    raise TransferOutcomeUnknown(asset_id, party, amount, Web3.to_hex(signed.hash),
                                                 f"send interrupted: {e}") from e
                logger.error(f"❌ {direction} {asset_id} {party}: транзакция не отправлена: {e}")
                return TransferResult(False, asset_id, party, amount, error=str(e))

        reference = Web3.to_hex(tx_hash)
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.tx_timeout)
        except Exception as wait_error:
            logger.warning(f"⏳ {direction} {asset_id} {party}: нет receipt для {reference} "
                           f"за {self.tx_timeout}s, последняя проверка")
            try:
                receipt = self._fetch_receipt(tx_hash)
            except Exception as e:
                raise TransferOutcomeUnknown(asset_id, party, amount, reference,
                                             f"receipt not received: {wait_error}; {e}") from e

        if receipt["status"] != 1:
            logger.error(f"❌ {direction} {asset_id} {party}: транзакция {reference} отклонена")
            return TransferResult(False, asset_id, party, amount, reference=reference,
                                  error="transaction reverted")

        logger.info(f"✅ {direction} {asset_id} {party}: "
                    f"{TokenConverter.format_units(amount, self.settings.token_decimals, symbol='')} | TX: {reference}")
        return TransferResult(True, asset_id, party, amount, reference=reference)
