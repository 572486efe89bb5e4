"""Component vocabulary for the five fixed diagram sections.

Everything here is built once at import time and is read-only afterwards.
"""

from types import MappingProxyType


# Fixed section order. The index is the layout column.
SECTION_IDS: tuple[str, ...] = ("power", "inputs", "control", "outputs", "peripherals")

SECTION_NAMES = MappingProxyType({
    "power": "Power Supply",
    "inputs": "Inputs Block",
    "control": "Control and Processing Block",
    "outputs": "Outputs Block",
    "peripherals": "Other Peripherals",
})

COMPONENT_VOCABULARY = MappingProxyType({
    "power": (
        "battery", "power supply", "ac adapter", "usb power", "dc power",
        "voltage regulator", "charger", "power source", "external power",
        "power management", "pmic", "5v", "12v", "3.3v", "lipo", "solar panel",
        "ac power", "power distribution",
    ),
    "inputs": (
        "sensor", "camera", "microphone", "button", "switch", "motion sensor",
        "temperature sensor", "humidity sensor", "pressure sensor", "accelerometer",
        "gyroscope", "gps", "keypad", "touch", "infrared", "ir receiver",
        "proximity", "light sensor", "photodiode", "encoder", "rotary encoder",
        "pir sensor", "distance sensor", "flow sensor", "optical sensor",
    ),
    "control": (
        "microcontroller", "mcu", "processor", "cpu", "arduino", "raspberry pi",
        "esp32", "esp8266", "stm32", "arm", "pic", "atmega", "fpga",
        "dsp", "signal processor", "ai processor", "neural network", "control unit",
        "system-on-chip", "soc", "compute module", "processor module",
    ),
    "outputs": (
        "led", "display", "lcd", "oled", "screen", "buzzer", "speaker",
        "motor", "servo", "actuator", "relay", "valve", "indicator",
        "vibrator", "haptic", "printer", "driver", "output device", "notification",
    ),
    "peripherals": (
        "wifi", "bluetooth", "ethernet", "usb", "uart", "spi", "i2c",
        "memory", "flash", "sd card", "eeprom", "ram", "storage",
        "rtc", "real-time clock", "watchdog", "oscillator", "crystal",
        "antenna", "transceiver", "modem", "gsm", "lte", "radio", "wireless",
        "communication module", "interface", "connectivity", "4g", "5g",
    ),
})

# Used when a section ends up with no classified components
DEFAULT_BLOCKS = MappingProxyType({
    "power": "Power Supply",
    "inputs": "Input Interface",
    "control": "MCU/Processor",
    "outputs": "Output Interface",
    "peripherals": "Peripherals",
})

DEFAULT_DETAILS = MappingProxyType({
    "power": (
        "Power supply provides regulated voltage (typically 5V or 3.3V) to all system "
        "components. Power flows from the source through voltage regulators to ensure "
        "stable operation. Current requirements depend on the total load of all "
        "connected components."
    ),
    "inputs": (
        "Input block receives signals from sensors and input devices. Signals may be "
        "analog (requiring ADC) or digital. Input voltage levels typically match the "
        "system logic levels (3.3V or 5V). Data is sampled and transmitted to the "
        "control block for processing."
    ),
    "control": (
        "Control and processing block contains the main microcontroller or processor. "
        "It processes input data, executes control algorithms, and manages "
        "communication with other blocks. Typical specifications include clock speed, "
        "memory capacity, and I/O capabilities."
    ),
    "outputs": (
        "Output block drives actuators, displays, and indicators based on control "
        "signals. Output drivers may be required for high-current devices. Voltage and "
        "current specifications depend on the specific output devices used."
    ),
    "peripherals": (
        "Peripheral block handles communication protocols (UART, SPI, I2C, WiFi, "
        "Bluetooth) and storage. Data rates and interface specifications vary based on "
        "the communication standard used. Storage capacity depends on application "
        "requirements."
    ),
})

DEFAULT_SOLUTION = (
    "This electronics product integrates various components across five key "
    "functional blocks to create a complete system."
)

# (id, from, to, label) for the unbound section-level topology
DEFAULT_CONNECTIONS: tuple[tuple[str, str, str, str], ...] = (
    ("conn1", "power", "control", "Power"),
    ("conn2", "inputs", "control", "Data"),
    ("conn3", "control", "outputs", "Control"),
    ("conn4", "control", "peripherals", "Interface"),
    ("conn5", "power", "inputs", "Power"),
    ("conn6", "power", "outputs", "Power"),
)


def all_vocabulary_terms() -> tuple[str, ...]:
    """Every vocabulary entry, in section order then list order."""
    return tuple(
        term
        for section_id in SECTION_IDS
        for term in COMPONENT_VOCABULARY[section_id]
    )
